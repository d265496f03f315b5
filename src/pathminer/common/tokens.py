"""Token normalization applied to every leaf before it reaches the corpus."""

from __future__ import annotations

import re

EMPTY_TOKEN = "EMPTY"

_ESCAPED_NEWLINE_RE = re.compile(r"\\n")
_WHITESPACE_RE = re.compile(r"\s+")
_QUOTES_RE = re.compile(r"[\"',]")
_NON_LETTER_RE = re.compile(r"[^A-Za-z]")
_SUBTOKEN_SPLIT_RE = re.compile(r"(?<=[a-z])(?=[A-Z])|_|[0-9]|(?<=[A-Z])(?=[A-Z][a-z])|\s+")


def _strip_unprintable(text: str) -> str:
    return "".join(ch for ch in text if ch.isprintable())


def normalize_token(token: str, default: str = EMPTY_TOKEN) -> str:
    """Lower-case `token` and strip everything that would break the corpus format.

    Letters are kept when there are any; otherwise the cleaned token is kept as
    is (numeric literals, operators), and `default` is used when nothing is left.
    """
    cleaned = token.lower()
    cleaned = _ESCAPED_NEWLINE_RE.sub("", cleaned)
    cleaned = _WHITESPACE_RE.sub("", cleaned)
    cleaned = _QUOTES_RE.sub("", cleaned)
    cleaned = _strip_unprintable(cleaned)
    stripped = _NON_LETTER_RE.sub("", cleaned)
    if stripped:
        return stripped
    return cleaned or default


def split_to_subtokens(token: str) -> list[str]:
    """Split camelCase / snake_case identifiers into normalized subtokens."""
    parts = _SUBTOKEN_SPLIT_RE.split(token.strip())
    subtokens = [normalize_token(part, "") for part in parts if part]
    return [sub for sub in subtokens if sub]
