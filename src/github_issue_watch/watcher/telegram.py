"""Telegram Bot API notifier."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import requests

from github_issue_watch.watcher.deadline import Deadline
from github_issue_watch.watcher.errors import NotifyCancelled, NotifyError

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send(self, *, chat_id: int, text: str, deadline: Deadline) -> int: ...


class TelegramNotifier:
    """Sends MarkdownV2 messages through the Bot API ``sendMessage`` method.

    The bot token is part of every request URL, so neither the URL nor raw transport
    exceptions are included in logs or error messages.
    """

    def __init__(
        self,
        *,
        token: str,
        base_url: str = "https://api.telegram.org",
        session: requests.Session | None = None,
    ) -> None:
        if not token:
            raise ValueError("Telegram token is required")
        self._method_base = f"{base_url.rstrip('/')}/bot{token}"
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": "github-issue-watch"})

    def _call(self, method: str, payload: dict[str, Any], *, timeout: float) -> dict[str, Any]:
        try:
            resp = self._session.post(f"{self._method_base}/{method}", json=payload, timeout=timeout)
        except requests.Timeout as e:
            raise NotifyError(f"Telegram {method} timed out") from e
        except requests.RequestException as e:
            raise NotifyError(f"Telegram {method} failed: {type(e).__name__}") from e

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if resp.status_code >= 400 or not body.get("ok", False):
            description = body.get("description")
            raise NotifyError(
                f"Telegram {method} rejected (HTTP {resp.status_code}): "
                f"{description or 'no description'}"
            )
        return body

    def send(self, *, chat_id: int, text: str, deadline: Deadline) -> int:
        """Send ``text`` to ``chat_id`` and return the new message id."""

        if deadline.expired:
            raise NotifyCancelled("Deadline exceeded before sending notification")

        body = self._call(
            "sendMessage",
            {"chat_id": chat_id, "text": text, "parse_mode": "MarkdownV2"},
            timeout=deadline.timeout(),
        )
        result = body.get("result")
        message_id = result.get("message_id") if isinstance(result, dict) else None
        logger.info("Notification sent", extra={"chat_id": chat_id, "message_id": message_id})
        return message_id if isinstance(message_id, int) else 0

    def close(self) -> None:
        self._session.close()
