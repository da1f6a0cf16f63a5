"""Ordering of movie lists by one of the supported sort keys."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Iterable

from .models import MovieRecord
from .utils import normalize_token


class SortKey(str, Enum):
    """Sort keys valued by their wire token; direction is part of the key."""

    TITLE_ASC = "title_asc"
    TITLE_DESC = "title_desc"
    YEAR_ASC = "year_asc"
    YEAR_DESC = "year_desc"
    RATING_ASC = "rating_asc"
    RATING_DESC = "rating_desc"
    INAPP_RATING_ASC = "inapp_rating_asc"
    INAPP_RATING_DESC = "inapp_rating_desc"

    @classmethod
    def from_token(cls, token: "str | SortKey") -> "SortKey":
        """Resolve ``rating_desc``, ``RATING-DESC`` or ``ratingDesc``."""

        if isinstance(token, SortKey):
            return token
        if not isinstance(token, str):
            raise ValueError(f"Unknown sort key: {token!r}")
        normalized = normalize_token(token).replace("in_app_", "inapp_")
        try:
            return cls(normalized)
        except ValueError as exc:
            raise ValueError(f"Unknown sort key: {token!r}") from exc

    @property
    def field(self) -> str:
        return self.value.rsplit("_", 1)[0]

    @property
    def descending(self) -> bool:
        return self.value.endswith("_desc")


_FIELD_GETTERS: dict[str, Callable[[MovieRecord], Any]] = {
    "title": lambda movie: movie.title,
    "year": lambda movie: movie.year,
    "rating": lambda movie: movie.rating,
    "inapp_rating": lambda movie: movie.average_rating(),
}


def sort_records(
    movies: Iterable[MovieRecord] | None, key: SortKey | str
) -> list[MovieRecord]:
    """Return a new list of ``movies`` ordered by ``key``.

    ``sorted`` is stable, and stays stable with ``reverse=True``, so movies
    sharing a sort value keep their relative input order either way.
    """

    if movies is None:
        return []
    key = SortKey.from_token(key)
    return sorted(movies, key=_FIELD_GETTERS[key.field], reverse=key.descending)
