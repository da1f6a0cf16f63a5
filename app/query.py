"""Request models validating search, sort and submission input."""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from .filters import FilterCriterion, FilterKind, build_criteria
from .sorting import SortKey

MIN_QUERY_YEAR = 1800
MAX_QUERY_YEAR = 2100
MIN_USER_RATING = 0.0
MAX_USER_RATING = 5.0


class SearchQuery(BaseModel):
    """Normalized view of the query parameters of a search request.

    Unknown parameters are rejected so a misspelt filter never silently
    widens the result set.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    title_keyword: str | None = Field(
        default=None,
        validation_alias=AliasChoices("title", "titleKeyword", "title_keyword"),
    )
    exact_title: str | None = Field(
        default=None,
        validation_alias=AliasChoices("exactTitle", "exact_title"),
    )
    director: str | None = None
    actor: str | None = Field(
        default=None,
        validation_alias=AliasChoices("actor", "cast", "castings"),
    )
    genre: str | None = None
    year: int | None = Field(default=None, ge=MIN_QUERY_YEAR, le=MAX_QUERY_YEAR)
    year_from: int | None = Field(
        default=None,
        ge=MIN_QUERY_YEAR,
        le=MAX_QUERY_YEAR,
        validation_alias=AliasChoices("yearFrom", "year_from", "minYear"),
    )
    year_to: int | None = Field(
        default=None,
        ge=MIN_QUERY_YEAR,
        le=MAX_QUERY_YEAR,
        validation_alias=AliasChoices("yearTo", "year_to", "maxYear"),
    )
    min_rating: float | None = Field(
        default=None,
        ge=0.0,
        le=10.0,
        validation_alias=AliasChoices("minRating", "min_rating"),
    )
    max_rating: float | None = Field(
        default=None,
        ge=0.0,
        le=10.0,
        validation_alias=AliasChoices("maxRating", "max_rating"),
    )
    comment_keyword: str | None = Field(
        default=None,
        validation_alias=AliasChoices("comment", "commentKeyword", "comment_keyword"),
    )
    min_inapp_rating: float | None = Field(
        default=None,
        ge=MIN_USER_RATING,
        le=MAX_USER_RATING,
        validation_alias=AliasChoices(
            "minInAppRating", "min_inapp_rating", "minUserRating"
        ),
    )
    sort: SortKey | None = Field(
        default=None,
        validation_alias=AliasChoices("sort", "sortType", "sort_by"),
    )

    @classmethod
    def from_request(cls, params: Mapping[str, Any]) -> "SearchQuery":
        return cls.model_validate(dict(params))

    @field_validator(
        "title_keyword",
        "exact_title",
        "director",
        "actor",
        "genre",
        "comment_keyword",
        "year",
        "year_from",
        "year_to",
        "min_rating",
        "max_rating",
        "min_inapp_rating",
        mode="before",
    )
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return value

    @field_validator("sort", mode="before")
    @classmethod
    def _parse_sort(cls, value: object) -> object:
        if isinstance(value, str):
            stripped = value.strip()
            return SortKey.from_token(stripped) if stripped else None
        return value

    @model_validator(mode="after")
    def _check_year_range(self) -> "SearchQuery":
        if (
            self.year_from is not None
            and self.year_to is not None
            and self.year_from > self.year_to
        ):
            raise ValueError("yearFrom must not be after yearTo")
        return self

    def is_empty(self) -> bool:
        return not self.criteria() and self.sort is None

    def criteria(self) -> dict[FilterKind, FilterCriterion]:
        """Return the typed filter query described by these parameters."""

        raw: dict[FilterKind, object] = {}
        text_fields = {
            FilterKind.TITLE_KEYWORD: self.title_keyword,
            FilterKind.EXACT_TITLE: self.exact_title,
            FilterKind.DIRECTOR: self.director,
            FilterKind.ACTOR: self.actor,
            FilterKind.GENRE: self.genre,
            FilterKind.COMMENT_KEYWORD: self.comment_keyword,
        }
        for kind, value in text_fields.items():
            if value is not None:
                raw[kind] = value
        if self.year is not None:
            raw[FilterKind.YEAR] = self.year
        if self.year_from is not None or self.year_to is not None:
            raw[FilterKind.YEAR_RANGE] = (
                self.year_from if self.year_from is not None else MIN_QUERY_YEAR,
                self.year_to if self.year_to is not None else MAX_QUERY_YEAR,
            )
        if self.min_rating is not None:
            raw[FilterKind.MIN_RATING] = self.min_rating
        if self.max_rating is not None:
            raw[FilterKind.MAX_RATING] = self.max_rating
        if self.min_inapp_rating is not None:
            raw[FilterKind.MIN_INAPP_RATING] = self.min_inapp_rating
        return build_criteria(raw)


class CommentSubmission(BaseModel):
    """Body of a comment submission; blank comments are refused."""

    comment: str

    @field_validator("comment")
    @classmethod
    def _reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Comment must not be blank")
        return value


class RatingSubmission(BaseModel):
    """Body of a rating submission; the score must lie within ``[0, 5]``."""

    rating: float = Field(
        ge=MIN_USER_RATING, le=MAX_USER_RATING, allow_inf_nan=False
    )
