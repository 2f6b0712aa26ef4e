"""GitHub access for the watcher: API client and issue feeds."""

from github_issue_watch.watcher.github.client import GitHubClient, IssuePage, WatchedIssue
from github_issue_watch.watcher.github.feeds import (
    FetchResult,
    GraphQLIssueFeed,
    IssueFeed,
    RestIssueFeed,
)

__all__ = [
    "FetchResult",
    "GitHubClient",
    "GraphQLIssueFeed",
    "IssueFeed",
    "IssuePage",
    "RestIssueFeed",
    "WatchedIssue",
]
