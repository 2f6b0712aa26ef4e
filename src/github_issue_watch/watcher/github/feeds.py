"""Issue feeds: page through new issues since a stored cursor.

Two strategies are supported and they store different kinds of cursor:

- :class:`RestIssueFeed` stores a Unix timestamp (``last_created_at``).
- :class:`GraphQLIssueFeed` stores an opaque GraphQL page cursor (``end_cursor``).

Both stop paging when GitHub reports no further pages, when the run deadline has
expired, or when ``max_issues`` issues have been collected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from github_issue_watch.watcher.deadline import Deadline
from github_issue_watch.watcher.errors import StoreError
from github_issue_watch.watcher.github.client import GitHubClient, WatchedIssue

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Issues collected by one fetch, plus the cursor to store if the run succeeds.

    ``next_cursor`` is None when the stored cursor must be left untouched.
    ``complete`` is False when paging stopped early (deadline or safety bound).
    """

    issues: list[WatchedIssue] = field(default_factory=list)
    next_cursor: str | None = None
    complete: bool = True


class IssueFeed(Protocol):
    cursor_kind: str

    def default_cursor(self, *, deadline: Deadline, started_at: datetime) -> str | None: ...

    def fetch(
        self,
        *,
        cursor: str | None,
        deadline: Deadline,
        max_issues: int,
        started_at: datetime,
    ) -> FetchResult: ...


def _unix_seconds(value: datetime) -> int:
    return int(value.timestamp())


class RestIssueFeed:
    """Timestamp-cursor feed over the REST issues listing."""

    cursor_kind = "last_created_at"

    def __init__(self, github: GitHubClient) -> None:
        self._github = github

    def default_cursor(self, *, deadline: Deadline, started_at: datetime) -> str | None:
        return str(_unix_seconds(started_at))

    @staticmethod
    def _parse_cursor(cursor: str) -> datetime:
        try:
            seconds = int(cursor.strip())
        except ValueError as e:
            raise StoreError(f"Stored cursor is not a Unix timestamp: {cursor!r}") from e
        return datetime.fromtimestamp(seconds, tz=UTC)

    def fetch(
        self,
        *,
        cursor: str | None,
        deadline: Deadline,
        max_issues: int,
        started_at: datetime,
    ) -> FetchResult:
        since = self._parse_cursor(cursor) if cursor is not None else started_at
        issues: list[WatchedIssue] = []
        page = 1
        complete = False

        while True:
            if deadline.expired:
                logger.warning(
                    "Deadline reached while paging; continuing with collected issues",
                    extra={"page": page, "collected": len(issues)},
                )
                break

            result = self._github.list_issues_page(
                since=since, page=page, timeout=deadline.timeout()
            )
            # `since` filters on update time; only creations after the cursor are new.
            issues.extend(i for i in result.issues if i.created_at >= since)

            if len(issues) >= max_issues:
                if len(issues) > max_issues or result.has_next_page:
                    logger.warning(
                        "Issue bound reached; remaining pages left for the next run",
                        extra={"max_issues": max_issues},
                    )
                    issues = issues[:max_issues]
                    break
            if not result.has_next_page:
                complete = True
                break
            page += 1

        if complete:
            next_cursor: str | None = str(_unix_seconds(started_at))
        elif issues:
            # Resume at the second of the last handled issue. Issues cut off in that
            # same second are fetched again next run, and the last handled one is resent.
            next_cursor = str(_unix_seconds(issues[-1].created_at))
        else:
            next_cursor = None

        return FetchResult(issues=issues, next_cursor=next_cursor, complete=complete)


class GraphQLIssueFeed:
    """Page-cursor feed over the GraphQL issues connection, oldest first."""

    cursor_kind = "end_cursor"

    def __init__(
        self,
        github: GitHubClient,
        *,
        start_cursor: str | None = None,
        page_size: int = 50,
    ) -> None:
        self._github = github
        self._start_cursor = start_cursor or None
        self._page_size = page_size

    def default_cursor(self, *, deadline: Deadline, started_at: datetime) -> str | None:
        if self._start_cursor is not None:
            return self._start_cursor
        # Nothing stored yet: treat the newest existing issue as already seen.
        return self._github.latest_issue_cursor(timeout=deadline.timeout())

    def fetch(
        self,
        *,
        cursor: str | None,
        deadline: Deadline,
        max_issues: int,
        started_at: datetime,
    ) -> FetchResult:
        issues: list[WatchedIssue] = []
        after = cursor
        complete = False

        while True:
            if deadline.expired:
                logger.warning(
                    "Deadline reached while paging; continuing with collected issues",
                    extra={"after": after, "collected": len(issues)},
                )
                break

            first = min(self._page_size, max_issues - len(issues))
            page = self._github.list_issues_after(
                after=after, first=first, timeout=deadline.timeout()
            )
            issues.extend(page.issues)
            if page.end_cursor is not None:
                after = page.end_cursor

            if not page.has_next_page:
                complete = True
                break
            if len(issues) >= max_issues:
                logger.warning(
                    "Issue bound reached; remaining pages left for the next run",
                    extra={"max_issues": max_issues},
                )
                break

        issues = issues[:max_issues]
        next_cursor = None
        if issues:
            next_cursor = issues[-1].cursor or after
        return FetchResult(issues=issues, next_cursor=next_cursor, complete=complete)
