#!/usr/bin/env python3
"""Preview which notifications the next watch run would send.

This demonstrates using the watcher components directly:

* load settings from `.env`
* read the stored cursor without modifying it
* fetch new issues and print the rendered messages

Nothing is sent and the stored cursor is left unchanged.
"""

from __future__ import annotations

import argparse
from datetime import UTC, datetime
from typing import Sequence

from github_issue_watch.watcher.config import load_settings
from github_issue_watch.watcher.cursor_store import RedisCursorStore, cursor_key
from github_issue_watch.watcher.deadline import Deadline
from github_issue_watch.watcher.github.client import GitHubClient
from github_issue_watch.watcher.logging import configure_logging
from github_issue_watch.watcher.markdown import format_issue_message
from github_issue_watch.watcher.runtime import build_feed


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Preview pending issue notifications.")
    parser.add_argument(
        "--all-authors",
        action="store_true",
        help="Show issues from every author, not just the watched ones",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = load_settings()
    configure_logging(settings.log_level)

    github = GitHubClient(
        token=settings.github_token,
        repository=settings.repository,
        base_url=settings.github_base_url,
    )
    feed = build_feed(settings, github)
    store = RedisCursorStore.from_url(settings.kv_url, timeout=settings.deadline_seconds)
    owner, name = settings.owner_and_name

    try:
        started_at = datetime.now(tz=UTC)
        deadline = Deadline(settings.deadline_seconds)
        cursor = store.get_cursor(cursor_key(feed.cursor_kind, owner, name))
        if cursor is None:
            cursor = feed.default_cursor(deadline=deadline, started_at=started_at)

        result = feed.fetch(
            cursor=cursor,
            deadline=deadline,
            max_issues=settings.max_issues,
            started_at=started_at,
        )
        authors = settings.parsed_authors()
        for issue in result.issues:
            if args.all_authors or issue.author in authors:
                print(f"#{issue.number}: {format_issue_message(issue)}")

        print(f"Cursor would move from {cursor!r} to {result.next_cursor!r}")
        return 0
    finally:
        github.close()
        store.close()


if __name__ == "__main__":
    raise SystemExit(main())
