"""CLI entrypoint for the issue watcher.

Without a command, performs a single watch run (suited to cron). ``serve`` exposes
the same run behind an authenticated HTTP endpoint.
"""

from __future__ import annotations

import argparse
import logging
import sys

from github_issue_watch import __version__
from github_issue_watch.watcher.config import load_settings
from github_issue_watch.watcher.errors import ConfigError, WatchError
from github_issue_watch.watcher.logging import configure_logging
from github_issue_watch.watcher.runtime import build_watcher

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="github-issue-watch",
        description="Forward new GitHub issues by watched authors to a Telegram chat",
    )
    parser.add_argument(
        "--version", action="version", version=f"github-issue-watch {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Perform one watch run (default)")

    serve = subparsers.add_parser("serve", help="Serve the HTTP trigger endpoint")
    serve.add_argument("--host", default="127.0.0.1", help="Bind host")
    serve.add_argument("--port", type=int, default=8000, help="Bind port")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except ConfigError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your environment or .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    if args.command == "serve":
        import uvicorn

        from github_issue_watch.server.app import create_app

        app = create_app(settings=settings)
        uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())
        return 0

    watcher = build_watcher(settings)
    try:
        result = watcher.run()
    except WatchError:
        logger.exception("Watch run failed")
        return 1

    print(f"Fetched {result.fetched} issue(s), sent {result.notified} notification(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
