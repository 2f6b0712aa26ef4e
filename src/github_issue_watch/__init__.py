"""GitHub Issue Watch.

Polls a repository's issue tracker for issues opened by a fixed set of authors
and forwards each one to a Telegram chat:
- configuration loaded from the environment or `.env`
- structured JSON logging
- a resumable cursor persisted in Redis
"""

__version__ = "0.1.0"

from github_issue_watch.watcher.config import WatchSettings

__all__ = ["__version__", "WatchSettings"]
