"""FastAPI app factory.

The trigger endpoint is a thin wrapper over :meth:`IssueWatcher.run`.
"""

from __future__ import annotations

import hmac
import logging

from fastapi import FastAPI, Header
from fastapi.responses import PlainTextResponse

from github_issue_watch import __version__
from github_issue_watch.server.models import HealthResponse
from github_issue_watch.watcher.config import WatchSettings, load_settings
from github_issue_watch.watcher.errors import WatchError
from github_issue_watch.watcher.runtime import build_watcher
from github_issue_watch.watcher.service import IssueWatcher

logger = logging.getLogger(__name__)


def _bearer_value(header: str | None) -> str:
    value = (header or "").strip()
    scheme, _, rest = value.partition(" ")
    if scheme.lower() == "bearer" and rest:
        return rest.strip()
    return value


def is_authorized(header: str | None, secret: str) -> bool:
    """Compare the Authorization header with the secret in constant time.

    The raw header is tried first, so a secret that itself starts with ``Bearer `` still
    matches. Then the header is tried with surrounding space and a ``Bearer`` scheme removed.
    """

    expected = secret.encode("utf-8")
    raw = hmac.compare_digest((header or "").encode("utf-8"), expected)
    stripped = hmac.compare_digest(_bearer_value(header).encode("utf-8"), expected)
    return raw or stripped


def create_app(
    settings: WatchSettings | None = None,
    watcher: IssueWatcher | None = None,
) -> FastAPI:
    """Build the app. Settings and clients are resolved once, at startup."""

    settings = settings or load_settings()
    watcher = watcher or build_watcher(settings)

    if not settings.secret:
        logger.warning("SECRET is not set; trigger requests without credentials are accepted")

    app = FastAPI(
        title="GitHub Issue Watch",
        version=__version__,
        description="HTTP trigger for the GitHub issue watcher.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url=None,
    )

    app.state.settings = settings
    app.state.watcher = watcher

    @app.get("/api/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(
            version=__version__,
            repository=settings.repository.strip(),
            mode=settings.mode,
        )

    @app.api_route("/api/watch", methods=["GET", "POST"], response_class=PlainTextResponse)
    def trigger_watch(authorization: str | None = Header(default=None)) -> PlainTextResponse:
        if not is_authorized(authorization, settings.secret):
            logger.warning("Rejected unauthorized watch trigger")
            return PlainTextResponse("Unauthorized", status_code=401)

        try:
            watcher.run()
        except WatchError as e:
            logger.exception("Watch run failed")
            return PlainTextResponse(str(e), status_code=500)

        return PlainTextResponse("OK", status_code=200)

    return app
