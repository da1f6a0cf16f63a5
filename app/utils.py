"""Utility helpers for the MovieFeaster service."""

from __future__ import annotations

import re
import unicodedata
from typing import Iterable


TOKEN_SEPARATOR_RE = re.compile(r"[\s\-]+")
CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def normalize_token(value: str) -> str:
    """Return a lower snake_case token for enum lookups.

    ``"titleKeyword"``, ``"Title-Keyword"`` and ``"TITLE KEYWORD"`` all map to
    ``"title_keyword"``.
    """

    value = unicodedata.normalize("NFKC", value).strip()
    value = CAMEL_BOUNDARY_RE.sub("_", value)
    value = TOKEN_SEPARATOR_RE.sub("_", value)
    value = re.sub(r"_+", "_", value)
    return value.strip("_").lower()


def fold(value: str) -> str:
    """Case-fold text for case-insensitive comparisons."""

    return value.casefold()


def any_contains(values: Iterable[str], needle: str) -> bool:
    """Return ``True`` when any entry contains ``needle`` ignoring case."""

    folded = fold(needle)
    return any(folded in fold(value) for value in values)


def split_csv(value: str) -> list[str]:
    """Split a comma separated setting into trimmed, non-empty parts."""

    return [part.strip() for part in value.split(",") if part.strip()]
