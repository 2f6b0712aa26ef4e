"""The watch run: new issues by watched authors -> Telegram notifications.

One run is strictly sequential:

1. read the stored cursor (or fall back to the feed's default)
2. page through issues created after it, within the run deadline
3. notify for each issue whose author is on the allow-list, in fetch order
4. store the feed's next cursor

Any failure aborts the run before the cursor is written, so the next run starts
from the same place. Issues notified before a failed send may be notified again
by that next run.

Overlapping runs are not serialised; the last cursor write wins.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from github_issue_watch.watcher.cursor_store import RedisCursorStore, cursor_key
from github_issue_watch.watcher.deadline import Deadline
from github_issue_watch.watcher.github.feeds import IssueFeed
from github_issue_watch.watcher.logging import run_context
from github_issue_watch.watcher.markdown import format_issue_message
from github_issue_watch.watcher.telegram import Notifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WatchResult:
    fetched: int
    notified: int
    skipped: int
    cursor: str | None
    complete: bool
    run_id: str = ""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class IssueWatcher:
    """Runs watch cycles against long-lived clients.

    The feed, store and notifier are built once per process (see
    :func:`github_issue_watch.watcher.runtime.build_watcher`) and reused by every run.
    """

    def __init__(
        self,
        *,
        feed: IssueFeed,
        store: RedisCursorStore,
        notifier: Notifier,
        chat_id: int,
        repository: str,
        authors: Iterable[str],
        deadline_seconds: float = 10.0,
        max_issues: int = 100,
        now: Callable[[], datetime] = _utc_now,
        deadline_factory: Callable[[float], Deadline] = Deadline,
    ) -> None:
        owner, _, name = repository.partition("/")
        if not owner or not name:
            raise ValueError("repository must be in the form 'owner/name'")
        if max_issues < 1:
            raise ValueError("max_issues must be at least 1")

        self._feed = feed
        self._store = store
        self._notifier = notifier
        self._chat_id = chat_id
        self._repository = repository
        self._authors = frozenset(authors)
        self._deadline_seconds = deadline_seconds
        self._max_issues = max_issues
        self._now = now
        self._deadline_factory = deadline_factory
        self._key = cursor_key(feed.cursor_kind, owner, name)

    @property
    def cursor_key(self) -> str:
        return self._key

    @property
    def authors(self) -> frozenset[str]:
        return self._authors

    def run(self) -> WatchResult:
        """Execute one watch cycle.

        Raises:
            StoreError: the cursor could not be read, parsed or written.
            FetchError: GitHub could not be queried.
            NotifyError: a notification could not be sent (cursor left unchanged).
        """

        run_id = uuid.uuid4().hex
        with run_context(run_id=run_id, repo=self._repository):
            return self._run(run_id)

    def _run(self, run_id: str) -> WatchResult:
        started_at = self._now()
        deadline = self._deadline_factory(self._deadline_seconds)
        logger.info(
            "Watch run started",
            extra={"cursor_key": self._key},
        )

        cursor = self._store.get_cursor(self._key)
        if cursor is None:
            cursor = self._feed.default_cursor(deadline=deadline, started_at=started_at)
            logger.info("Using default cursor", extra={"cursor": cursor})

        fetched = self._feed.fetch(
            cursor=cursor,
            deadline=deadline,
            max_issues=self._max_issues,
            started_at=started_at,
        )

        notified = 0
        skipped = 0
        for issue in fetched.issues:
            if issue.author not in self._authors:
                skipped += 1
                logger.debug(
                    "Skipping issue from unwatched author",
                    extra={"issue_number": issue.number, "author": issue.author},
                )
                continue

            self._notifier.send(
                chat_id=self._chat_id,
                text=format_issue_message(issue),
                deadline=deadline,
            )
            notified += 1
            logger.info(
                "Issue notified",
                extra={"issue_number": issue.number, "author": issue.author},
            )

        if fetched.next_cursor is not None:
            self._store.set_cursor(self._key, fetched.next_cursor)

        result = WatchResult(
            fetched=len(fetched.issues),
            notified=notified,
            skipped=skipped,
            cursor=fetched.next_cursor,
            complete=fetched.complete,
            run_id=run_id,
        )
        logger.info(
            "Watch run finished",
            extra={
                "fetched": result.fetched,
                "notified": result.notified,
                "skipped": result.skipped,
                "complete": result.complete,
            },
        )
        return result
