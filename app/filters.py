"""Typed filter criteria and the AND-chain evaluator that applies them."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Iterable, Mapping, Sequence, Union

from .models import Genre, MovieRecord
from .utils import any_contains, fold, normalize_token

logger = logging.getLogger(__name__)


class InvalidCriterionError(ValueError):
    """Raised when a filter query cannot be evaluated as supplied."""


class FilterKind(str, Enum):
    """Closed set of filter kinds, valued by their wire token."""

    TITLE_KEYWORD = "title_keyword"
    EXACT_TITLE = "exact_title"
    DIRECTOR = "director"
    ACTOR = "actor"
    GENRE = "genre"
    YEAR = "year"
    YEAR_RANGE = "year_range"
    MIN_RATING = "min_rating"
    MAX_RATING = "max_rating"
    COMMENT_KEYWORD = "comment_keyword"
    MIN_INAPP_RATING = "min_inapp_rating"

    @classmethod
    def from_token(cls, token: "str | FilterKind") -> "FilterKind":
        """Resolve a wire token such as ``titleKeyword`` or ``MIN_RATING``."""

        if isinstance(token, FilterKind):
            return token
        if not isinstance(token, str):
            raise InvalidCriterionError(f"Unknown filter kind: {token!r}")
        normalized = normalize_token(token)
        normalized = _KIND_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError as exc:
            raise InvalidCriterionError(f"Unknown filter kind: {token!r}") from exc


_KIND_ALIASES = {
    "title": "title_keyword",
    "cast": "actor",
    "min_in_app_rating": "min_inapp_rating",
}


def _require_text(kind: FilterKind, value: object) -> None:
    if not isinstance(value, str):
        raise InvalidCriterionError(
            f"{kind.value} expects text, got {type(value).__name__}"
        )


def _require_int(kind: FilterKind, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidCriterionError(
            f"{kind.value} expects an integer, got {type(value).__name__}"
        )


def _require_number(kind: FilterKind, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidCriterionError(
            f"{kind.value} expects a number, got {type(value).__name__}"
        )
    if math.isnan(value):
        raise InvalidCriterionError(f"{kind.value} must not be NaN")


@dataclass(frozen=True, slots=True)
class TitleKeyword:
    keyword: str
    kind: ClassVar[FilterKind] = FilterKind.TITLE_KEYWORD

    def __post_init__(self) -> None:
        _require_text(self.kind, self.keyword)

    def matches(self, movie: MovieRecord) -> bool:
        return fold(self.keyword) in fold(movie.title)


@dataclass(frozen=True, slots=True)
class ExactTitle:
    title: str
    kind: ClassVar[FilterKind] = FilterKind.EXACT_TITLE

    def __post_init__(self) -> None:
        _require_text(self.kind, self.title)

    def matches(self, movie: MovieRecord) -> bool:
        return fold(self.title) == fold(movie.title)


@dataclass(frozen=True, slots=True)
class Director:
    name: str
    kind: ClassVar[FilterKind] = FilterKind.DIRECTOR

    def __post_init__(self) -> None:
        _require_text(self.kind, self.name)

    def matches(self, movie: MovieRecord) -> bool:
        return any_contains(movie.directors, self.name)


@dataclass(frozen=True, slots=True)
class Actor:
    name: str
    kind: ClassVar[FilterKind] = FilterKind.ACTOR

    def __post_init__(self) -> None:
        _require_text(self.kind, self.name)

    def matches(self, movie: MovieRecord) -> bool:
        return any_contains(movie.castings, self.name)


@dataclass(frozen=True, slots=True)
class GenreCriterion:
    name: str
    kind: ClassVar[FilterKind] = FilterKind.GENRE

    def __post_init__(self) -> None:
        _require_text(self.kind, self.name)

    def matches(self, movie: MovieRecord) -> bool:
        genre = Genre.from_name(self.name)
        if genre is not None and genre in movie.genres:
            return True
        return any_contains(movie.genre_names(), self.name)


@dataclass(frozen=True, slots=True)
class Year:
    year: int
    kind: ClassVar[FilterKind] = FilterKind.YEAR

    def __post_init__(self) -> None:
        _require_int(self.kind, self.year)

    def matches(self, movie: MovieRecord) -> bool:
        return movie.year == self.year


@dataclass(frozen=True, slots=True)
class YearRange:
    """Inclusive on both ends."""

    start: int
    end: int
    kind: ClassVar[FilterKind] = FilterKind.YEAR_RANGE

    def __post_init__(self) -> None:
        _require_int(self.kind, self.start)
        _require_int(self.kind, self.end)
        if self.start > self.end:
            raise InvalidCriterionError(
                f"year_range start {self.start} is after end {self.end}"
            )

    def matches(self, movie: MovieRecord) -> bool:
        return self.start <= movie.year <= self.end


@dataclass(frozen=True, slots=True)
class MinRating:
    rating: float
    kind: ClassVar[FilterKind] = FilterKind.MIN_RATING

    def __post_init__(self) -> None:
        _require_number(self.kind, self.rating)

    def matches(self, movie: MovieRecord) -> bool:
        return movie.rating >= self.rating


@dataclass(frozen=True, slots=True)
class MaxRating:
    rating: float
    kind: ClassVar[FilterKind] = FilterKind.MAX_RATING

    def __post_init__(self) -> None:
        _require_number(self.kind, self.rating)

    def matches(self, movie: MovieRecord) -> bool:
        return movie.rating <= self.rating


@dataclass(frozen=True, slots=True)
class CommentKeyword:
    keyword: str
    kind: ClassVar[FilterKind] = FilterKind.COMMENT_KEYWORD

    def __post_init__(self) -> None:
        _require_text(self.kind, self.keyword)

    def matches(self, movie: MovieRecord) -> bool:
        return any_contains(movie.comments, self.keyword)


@dataclass(frozen=True, slots=True)
class MinInAppRating:
    rating: float
    kind: ClassVar[FilterKind] = FilterKind.MIN_INAPP_RATING

    def __post_init__(self) -> None:
        _require_number(self.kind, self.rating)

    def matches(self, movie: MovieRecord) -> bool:
        return movie.average_rating() >= self.rating


FilterCriterion = Union[
    TitleKeyword,
    ExactTitle,
    Director,
    Actor,
    GenreCriterion,
    Year,
    YearRange,
    MinRating,
    MaxRating,
    CommentKeyword,
    MinInAppRating,
]

CRITERION_TYPES: dict[FilterKind, type] = {
    criterion_type.kind: criterion_type
    for criterion_type in (
        TitleKeyword,
        ExactTitle,
        Director,
        Actor,
        GenreCriterion,
        Year,
        YearRange,
        MinRating,
        MaxRating,
        CommentKeyword,
        MinInAppRating,
    )
}

FilterQuery = Mapping[FilterKind, FilterCriterion]


def build_criterion(kind: FilterKind | str, payload: object) -> FilterCriterion:
    """Turn a raw ``(kind, payload)`` pair into a typed criterion.

    Numeric payloads may arrive as strings from query parameters; anything
    that cannot be coerced raises :class:`InvalidCriterionError`.
    """

    kind = FilterKind.from_token(kind)
    if payload is None:
        raise InvalidCriterionError(f"{kind.value} requires a value")
    criterion_type = CRITERION_TYPES[kind]
    if isinstance(payload, criterion_type):
        return payload

    if kind is FilterKind.YEAR:
        return Year(_coerce_int(kind, payload))
    if kind is FilterKind.YEAR_RANGE:
        start, end = _coerce_range(kind, payload)
        return YearRange(start, end)
    if kind in {
        FilterKind.MIN_RATING,
        FilterKind.MAX_RATING,
        FilterKind.MIN_INAPP_RATING,
    }:
        return criterion_type(_coerce_float(kind, payload))
    return criterion_type(payload)


def build_criteria(raw: Mapping[FilterKind | str, object] | None) -> dict[FilterKind, FilterCriterion]:
    """Build a typed query from a mapping of tokens to raw payloads."""

    criteria: dict[FilterKind, FilterCriterion] = {}
    for token, payload in (raw or {}).items():
        kind = FilterKind.from_token(token)
        if kind in criteria:
            raise InvalidCriterionError(f"{kind.value} supplied more than once")
        criteria[kind] = build_criterion(kind, payload)
    return criteria


def _coerce_int(kind: FilterKind, value: object) -> int:
    if isinstance(value, bool):
        raise InvalidCriterionError(f"{kind.value} expects an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise InvalidCriterionError(f"{kind.value} expects an integer") from exc
    raise InvalidCriterionError(f"{kind.value} expects an integer")


def _coerce_float(kind: FilterKind, value: object) -> float:
    if isinstance(value, bool):
        raise InvalidCriterionError(f"{kind.value} expects a number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as exc:
            raise InvalidCriterionError(f"{kind.value} expects a number") from exc
    raise InvalidCriterionError(f"{kind.value} expects a number")


def _coerce_range(kind: FilterKind, value: object) -> tuple[int, int]:
    if isinstance(value, str):
        parts: Sequence[object] = [part for part in value.replace(",", "-").split("-")]
    elif isinstance(value, (list, tuple)):
        parts = value
    else:
        raise InvalidCriterionError(f"{kind.value} expects a pair of years")
    if len(parts) != 2:
        raise InvalidCriterionError(f"{kind.value} expects a pair of years")
    return _coerce_int(kind, parts[0]), _coerce_int(kind, parts[1])


def validate_query(criteria: Mapping[object, object]) -> list[FilterCriterion]:
    """Check every entry before any filtering happens.

    A query with a missing payload, a foreign object or a criterion filed
    under the wrong kind is rejected as a whole.
    """

    validated: list[FilterCriterion] = []
    for key, criterion in criteria.items():
        kind = FilterKind.from_token(key)  # type: ignore[arg-type]
        if criterion is None:
            raise InvalidCriterionError(f"{kind.value} requires a value")
        expected = CRITERION_TYPES[kind]
        if not isinstance(criterion, expected):
            raise InvalidCriterionError(
                f"{kind.value} expects {expected.__name__}, "
                f"got {type(criterion).__name__}"
            )
        validated.append(criterion)
    return validated


def apply_filters(
    movies: Iterable[MovieRecord],
    criteria: Mapping[object, object] | None,
) -> list[MovieRecord]:
    """Return the movies satisfying every criterion, in input order."""

    results = list(movies)
    if not criteria:
        return results

    for criterion in validate_query(criteria):
        results = [movie for movie in results if criterion.matches(movie)]
        logger.debug("%s left %d movies", criterion, len(results))
    return results
