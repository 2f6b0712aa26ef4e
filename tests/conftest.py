"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from github_issue_watch.watcher.github.client import WatchedIssue

WATCH_ENV = {
    "GITHUB_TOKEN": "gh-test-token",
    "TELEGRAM_TOKEN": "123456:tg-test-token",
    "TELEGRAM_CHAT": "-1001234567890",
    "REPO": "golang/go",
    "KV_URL": "redis://default:pw@kv.example.com:6379",
}

_OPTIONAL_ENV = (
    "SECRET",
    "WATCH_AUTHORS",
    "WATCH_MODE",
    "WATCH_DEADLINE_SECONDS",
    "WATCH_MAX_ISSUES",
    "WATCH_GRAPHQL_START_CURSOR",
    "GITHUB_BASE_URL",
    "TELEGRAM_API_URL",
    "LOG_LEVEL",
)


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def watch_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> dict[str, str]:
    """Provide a complete, isolated environment for settings loading."""
    monkeypatch.chdir(tmp_path)
    for name in _OPTIONAL_ENV:
        monkeypatch.delenv(name, raising=False)
    for name, value in WATCH_ENV.items():
        monkeypatch.setenv(name, value)
    return dict(WATCH_ENV)


@pytest.fixture
def started_at() -> datetime:
    return datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def make_issue(started_at: datetime) -> Callable[..., WatchedIssue]:
    """Build WatchedIssue values; created one minute apart after `started_at` by default."""

    def _make(
        number: int,
        author: str = "rsc",
        *,
        title: str | None = None,
        url: str | None = None,
        created_at: datetime | None = None,
        cursor: str | None = None,
    ) -> WatchedIssue:
        return WatchedIssue(
            node_id=f"I_{number}",
            number=number,
            author=author,
            title=title if title is not None else f"issue {number}",
            url=url if url is not None else f"https://github.com/golang/go/issues/{number}",
            created_at=created_at or started_at - timedelta(hours=1) + timedelta(minutes=number),
            state="open",
            cursor=cursor,
        )

    return _make
