"""Redis-backed storage for the per-repository watch cursor.

One string key per watched repository, ``<kind>:<owner>:<name>``. The value is a
decimal Unix timestamp or a GraphQL page cursor depending on the feed in use.
"""

from __future__ import annotations

import logging

import redis
from redis.backoff import NoBackoff
from redis.retry import Retry

from github_issue_watch.watcher.errors import StoreError

logger = logging.getLogger(__name__)


def cursor_key(kind: str, owner: str, name: str) -> str:
    return f"{kind}:{owner}:{name}"


def secure_redis_url(url: str) -> str:
    """Force TLS: hosted key-value stores hand out ``redis://`` URLs but only accept TLS."""

    url = url.strip()
    if url.startswith("redis://"):
        return "rediss://" + url[len("redis://") :]
    return url


class RedisCursorStore:
    """Reads and writes watch cursors.

    The underlying client owns a connection pool and connects on first use, so a
    single store built at process start is shared by every run in that process.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, *, timeout: float | None = None) -> RedisCursorStore:
        client = redis.Redis.from_url(
            secure_redis_url(url),
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
            # A failed command fails the run; the next scheduled run is the retry.
            retry=Retry(NoBackoff(), 0),
        )
        return cls(client)

    def get_cursor(self, key: str) -> str | None:
        """Return the stored cursor, or None when nothing has been stored yet."""

        try:
            value = self._client.get(key)
        except redis.RedisError as e:
            raise StoreError(f"Reading cursor {key!r} failed: {e}") from e

        if value is None:
            logger.info("No stored cursor", extra={"key": key})
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        if not isinstance(value, str) or not value.strip():
            raise StoreError(f"Stored cursor {key!r} is empty or malformed")
        return value

    def set_cursor(self, key: str, value: str) -> None:
        try:
            self._client.set(key, value)
        except redis.RedisError as e:
            raise StoreError(f"Writing cursor {key!r} failed: {e}") from e
        logger.info("Cursor stored", extra={"key": key, "cursor": value})

    def close(self) -> None:
        self._client.close()
