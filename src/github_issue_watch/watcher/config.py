"""Configuration for the issue watcher.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Variable names match the deployment environment (e.g. `GITHUB_TOKEN`, `KV_URL`)
rather than carrying a project prefix, so the same values can drive both the CLI
and the HTTP trigger.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from github_issue_watch.watcher.errors import ConfigError

WatchMode = Literal["rest", "graphql"]

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class WatchSettings(BaseSettings):
    """Settings for a watch run.

    Environment variables:
    - GITHUB_TOKEN, TELEGRAM_TOKEN, TELEGRAM_CHAT, REPO, KV_URL  (required)
    - SECRET, WATCH_AUTHORS, WATCH_MODE, LOG_LEVEL, ...         (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `WatchSettings(_env_file=path_to_env)`.
    """

    # Required values default to empty so validation below can report every missing
    # variable by its environment name in one error.
    github_token: str = Field(
        default="",
        validation_alias="GITHUB_TOKEN",
        description="GitHub token used for API authentication",
    )
    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )

    telegram_token: str = Field(
        default="",
        validation_alias="TELEGRAM_TOKEN",
        description="Telegram bot token",
    )
    telegram_chat: str = Field(
        default="",
        validation_alias="TELEGRAM_CHAT",
        description="Numeric id of the chat that receives notifications",
    )
    telegram_api_url: str = Field(
        default="https://api.telegram.org",
        validation_alias="TELEGRAM_API_URL",
        description="Telegram Bot API base URL (useful for a local Bot API server)",
    )

    repository: str = Field(
        default="",
        validation_alias="REPO",
        description="Watched repository in the form 'owner/name'",
    )
    kv_url: str = Field(
        default="",
        validation_alias="KV_URL",
        description="Redis connection string for the cursor store",
    )

    secret: str = Field(
        default="",
        validation_alias="SECRET",
        description="Shared secret expected in the Authorization header of HTTP triggers",
    )

    authors: str = Field(
        default="rsc,j178",
        validation_alias="WATCH_AUTHORS",
        description="Comma-separated GitHub logins whose new issues are forwarded",
    )
    mode: WatchMode = Field(
        default="rest",
        validation_alias="WATCH_MODE",
        description="Issue listing strategy: 'rest' (timestamp cursor) or 'graphql' (page cursor)",
    )
    deadline_seconds: float = Field(
        default=10.0,
        validation_alias="WATCH_DEADLINE_SECONDS",
        description="Hard deadline covering every network call of one run",
        gt=0,
        le=60,
    )
    max_issues: int = Field(
        default=100,
        validation_alias="WATCH_MAX_ISSUES",
        description="Upper bound on issues collected in one run",
        ge=1,
    )
    graphql_start_cursor: str = Field(
        default="",
        validation_alias="WATCH_GRAPHQL_START_CURSOR",
        description=(
            "Page cursor used when no cursor is stored yet in graphql mode. "
            "When empty, the newest existing issue is used as the starting point."
        ),
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def _require_values(self) -> WatchSettings:
        required = {
            "GITHUB_TOKEN": self.github_token,
            "TELEGRAM_TOKEN": self.telegram_token,
            "TELEGRAM_CHAT": self.telegram_chat,
            "REPO": self.repository,
            "KV_URL": self.kv_url,
        }
        missing = [name for name, value in required.items() if not value.strip()]
        if missing:
            raise ValueError(f"{', '.join(missing)} is not set")

        try:
            chat_id = int(self.telegram_chat.strip())
        except ValueError as e:
            raise ValueError(f"TELEGRAM_CHAT must be an integer, got {self.telegram_chat!r}") from e
        if not _INT64_MIN <= chat_id <= _INT64_MAX:
            raise ValueError("TELEGRAM_CHAT is out of range")

        owner, _, name = self.repository.strip().partition("/")
        if not owner.strip() or not name.strip() or "/" in name:
            raise ValueError(f"REPO must be in the form 'owner/name', got {self.repository!r}")
        return self

    @property
    def chat_id(self) -> int:
        """Destination chat id."""

        return int(self.telegram_chat.strip())

    @property
    def owner_and_name(self) -> tuple[str, str]:
        owner, _, name = self.repository.strip().partition("/")
        return owner, name

    def parsed_authors(self) -> frozenset[str]:
        return frozenset(a.strip() for a in self.authors.split(",") if a.strip())


def load_settings(**overrides: Any) -> WatchSettings:
    """Load and validate settings, raising :class:`ConfigError` on failure."""

    try:
        return WatchSettings(**overrides)
    except ValidationError as e:
        # str(e) echoes input values, which include the tokens.
        problems = []
        for err in e.errors(include_input=False):
            loc = ".".join(str(part) for part in err.get("loc", ()))
            problems.append(f"{loc}: {err['msg']}" if loc else err["msg"])
        raise ConfigError("Invalid configuration: " + "; ".join(problems)) from e
