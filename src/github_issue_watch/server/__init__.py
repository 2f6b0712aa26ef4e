"""FastAPI server adapter for github-issue-watch.

Exposes a single authenticated trigger for the watch run so an external scheduler
(e.g. a hosted cron) can drive it over HTTP.

Design intent:
- Keep watch logic in `github_issue_watch.watcher.*`
- Keep server-specific concerns (routing, trigger authentication) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from github_issue_watch.server.app import create_app
