"""Pydantic models describing catalog movies."""

from __future__ import annotations

import math
import threading
from enum import IntEnum
from typing import Any, Iterable

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    computed_field,
    field_serializer,
    field_validator,
)

from .utils import normalize_token

DEFAULT_TITLE = "Unknown Title"
DEFAULT_OVERVIEW = "No Overview"
MIN_ACCEPTED_YEAR = 1800
MIN_CRITIC_RATING = 0.0
MAX_CRITIC_RATING = 10.0


def _as_number(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


def _is_critic_rating(value: object) -> bool:
    number = _as_number(value)
    return number is not None and MIN_CRITIC_RATING <= number <= MAX_CRITIC_RATING


def _is_release_year(value: object) -> bool:
    number = _as_number(value)
    return number is not None and number > MIN_ACCEPTED_YEAR


# Assignments failing these checks leave the current value in place.
_ASSIGNMENT_GUARDS = {
    "rating": _is_critic_rating,
    "year": _is_release_year,
}


class Genre(IntEnum):
    """TMDB movie genres keyed by their stable TMDB genre id."""

    ACTION = 28
    ADVENTURE = 12
    ANIMATION = 16
    COMEDY = 35
    CRIME = 80
    DOCUMENTARY = 99
    DRAMA = 18
    FAMILY = 10751
    FANTASY = 14
    HISTORY = 36
    HORROR = 27
    MUSIC = 10402
    MYSTERY = 9648
    ROMANCE = 10749
    SCIENCE_FICTION = 878
    TV_MOVIE = 10770
    THRILLER = 53
    WAR = 10752
    WESTERN = 37

    @classmethod
    def from_id(cls, genre_id: int) -> "Genre | None":
        """Return the genre for a TMDB id, or ``None`` when unknown."""

        try:
            return cls(genre_id)
        except ValueError:
            return None

    @classmethod
    def from_name(cls, name: str) -> "Genre | None":
        """Return the genre matching ``name`` ignoring case and separators."""

        token = normalize_token(name or "").upper()
        return cls.__members__.get(token)

    @classmethod
    def coerce_many(cls, values: Iterable[object]) -> list["Genre"]:
        """Resolve members, ids or names into unique genres, dropping unknowns."""

        genres: list[Genre] = []
        for value in values:
            genre: Genre | None
            if isinstance(value, Genre):
                genre = value
            elif isinstance(value, int) and not isinstance(value, bool):
                genre = cls.from_id(value)
            elif isinstance(value, str):
                stripped = value.strip()
                genre = (
                    cls.from_id(int(stripped))
                    if stripped.isdigit()
                    else cls.from_name(stripped)
                )
            else:
                genre = None
            if genre is not None and genre not in genres:
                genres.append(genre)
        return genres


class MovieRecord(BaseModel):
    """A single catalog movie plus the comments and ratings users add to it.

    Construction never fails on missing upstream data: blank titles and
    overviews, ``None`` lists, implausible years and out-of-range critic
    ratings are replaced with neutral defaults. User comments and ratings are
    append-only and guarded by a per-record lock so concurrent submissions
    cannot interleave mid-append.
    """

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    id: int = Field(
        frozen=True,
        validation_alias=AliasChoices("id", "movie_id", "movieId"),
    )
    title: str = DEFAULT_TITLE
    directors: list[str] = Field(default_factory=list)
    year: int = 0
    rating: float = 0.0
    genres: list[Genre] = Field(default_factory=list)
    overview: str = DEFAULT_OVERVIEW
    castings: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("castings", "cast"),
    )
    img_url: str = Field(
        default="",
        validation_alias=AliasChoices("img_url", "imgUrl"),
    )

    _comments: list[str] = PrivateAttr(default_factory=list)
    _user_ratings: list[float] = PrivateAttr(default_factory=list)
    _lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_TITLE
        return value

    @field_validator("overview", mode="before")
    @classmethod
    def _default_overview(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_OVERVIEW
        return value

    @field_validator("directors", "castings", mode="before")
    @classmethod
    def _default_names(cls, value: object) -> object:
        return [] if value is None else value

    @field_validator("img_url", mode="before")
    @classmethod
    def _default_img_url(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("year", mode="before")
    @classmethod
    def _default_year(cls, value: object) -> object:
        return 0 if value is None else value

    @field_validator("year")
    @classmethod
    def _normalize_year(cls, value: int) -> int:
        return value if value > MIN_ACCEPTED_YEAR else 0

    @field_validator("rating", mode="before")
    @classmethod
    def _default_rating(cls, value: object) -> object:
        return 0.0 if value is None else value

    @field_validator("rating")
    @classmethod
    def _reject_rating(cls, value: float) -> float:
        if MIN_CRITIC_RATING <= value <= MAX_CRITIC_RATING:
            return value
        return 0.0

    @field_validator("genres", mode="before")
    @classmethod
    def _coerce_genres(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, (list, tuple, set, frozenset)):
            return Genre.coerce_many(value)
        return value

    @field_serializer("genres")
    def _serialize_genres(self, genres: list[Genre]) -> list[str]:
        return [genre.name for genre in genres]

    def __setattr__(self, name: str, value: Any) -> None:
        guard = _ASSIGNMENT_GUARDS.get(name)
        if guard is not None and not guard(value):
            return
        super().__setattr__(name, value)

    # Setters that keep the prior value when handed unusable data.

    def update_title(self, title: str | None) -> None:
        if title is not None and title.strip():
            self.title = title

    def update_year(self, year: int) -> None:
        self.year = year

    def update_rating_value(self, rating: float) -> None:
        """Replace the critic rating when it lies within ``[0, 10]``."""

        self.rating = rating

    # User contributed data.

    def add_comment(self, comment: str) -> None:
        """Append a user comment verbatim."""

        with self._lock:
            self._comments.append(comment)

    def add_rating(self, rating: float) -> None:
        """Append a user rating verbatim; range checks happen at the boundary."""

        with self._lock:
            self._user_ratings.append(float(rating))

    def average_rating(self) -> float:
        """Return the mean user rating, or ``0.0`` when nobody has rated."""

        with self._lock:
            ratings = list(self._user_ratings)
        if not ratings:
            return 0.0
        return sum(ratings) / len(ratings)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def comments(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._comments)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def user_ratings(self) -> tuple[float, ...]:
        with self._lock:
            return tuple(self._user_ratings)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def in_app_rating(self) -> float:
        return self.average_rating()

    def genre_names(self) -> list[str]:
        return [genre.name for genre in self.genres]

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "MovieRecord":
        """Build a record from a loose mapping, restoring user contributions."""

        record = cls.model_validate(
            {
                key: value
                for key, value in data.items()
                if key not in {"comments", "user_ratings", "in_app_rating"}
            }
        )
        for comment in data.get("comments") or []:
            record.add_comment(str(comment))
        for rating in data.get("user_ratings") or []:
            record.add_rating(float(rating))
        return record
