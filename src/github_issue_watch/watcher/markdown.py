"""Telegram MarkdownV2 rendering for issue notifications."""

from __future__ import annotations

from typing import Protocol

# Characters with special meaning in Telegram's MarkdownV2, plus the escape character.
MARKDOWN_V2_RESERVED = "_*[]()~`>#+-=|{}.!\\"

_ESCAPE_TABLE = str.maketrans({ch: "\\" + ch for ch in MARKDOWN_V2_RESERVED})


class _IssueLike(Protocol):
    author: str
    title: str
    url: str


def escape_markdown(text: str) -> str:
    """Backslash-escape every MarkdownV2 reserved character in ``text``.

    Each input character is translated exactly once, so an existing backslash
    becomes ``\\\\`` and is not confused with an escape introduced here. Escaping
    already-escaped text escapes it again.
    """

    return text.translate(_ESCAPE_TABLE)


def format_issue_message(issue: _IssueLike) -> str:
    """Render the notification for a newly created issue."""

    return (
        f"{escape_markdown(issue.author)} created a new issue: "
        f"[{escape_markdown(issue.title)}]({escape_markdown(issue.url)})"
    )
