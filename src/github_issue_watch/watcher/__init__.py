"""Issue watcher package initialization."""

from github_issue_watch.watcher.errors import (
    ConfigError,
    FetchError,
    NotifyCancelled,
    NotifyError,
    StoreError,
    WatchError,
)
from github_issue_watch.watcher.service import IssueWatcher, WatchResult

__all__ = [
    "ConfigError",
    "FetchError",
    "IssueWatcher",
    "NotifyCancelled",
    "NotifyError",
    "StoreError",
    "WatchError",
    "WatchResult",
]
