"""Process-wide wiring: build the long-lived clients once and hand them to the watcher."""

from __future__ import annotations

import logging

from github_issue_watch.watcher.config import WatchSettings
from github_issue_watch.watcher.cursor_store import RedisCursorStore
from github_issue_watch.watcher.github.client import GitHubClient
from github_issue_watch.watcher.github.feeds import GraphQLIssueFeed, IssueFeed, RestIssueFeed
from github_issue_watch.watcher.service import IssueWatcher
from github_issue_watch.watcher.telegram import TelegramNotifier

logger = logging.getLogger(__name__)


def build_feed(settings: WatchSettings, github: GitHubClient) -> IssueFeed:
    if settings.mode == "graphql":
        return GraphQLIssueFeed(github, start_cursor=settings.graphql_start_cursor.strip() or None)
    return RestIssueFeed(github)


def build_watcher(settings: WatchSettings) -> IssueWatcher:
    """Construct the watcher and its clients.

    Client construction failures (e.g. an unparsable ``KV_URL``) propagate: they are
    fatal to the process, not to a single run.
    """

    github = GitHubClient(
        token=settings.github_token,
        repository=settings.repository.strip(),
        base_url=settings.github_base_url,
    )
    store = RedisCursorStore.from_url(settings.kv_url, timeout=settings.deadline_seconds)
    notifier = TelegramNotifier(token=settings.telegram_token, base_url=settings.telegram_api_url)

    watcher = IssueWatcher(
        feed=build_feed(settings, github),
        store=store,
        notifier=notifier,
        chat_id=settings.chat_id,
        repository=settings.repository.strip(),
        authors=settings.parsed_authors(),
        deadline_seconds=settings.deadline_seconds,
        max_issues=settings.max_issues,
    )
    logger.info(
        "Watcher initialised",
        extra={
            "repo": settings.repository.strip(),
            "mode": settings.mode,
            "authors": sorted(watcher.authors),
        },
    )
    return watcher
