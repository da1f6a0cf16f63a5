"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable, Literal

from pydantic import AliasChoices, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .sorting import SortKey
from .utils import split_csv


DEFAULT_CORS_ORIGINS: tuple[str, ...] = ("http://localhost:3000",)


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="MovieFeaster", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=8080, alias="PORT")

    tmdb_api_token: str | None = Field(
        default=None,
        alias="TMDB_API_TOKEN",
        validation_alias=AliasChoices("TMDB_API_TOKEN", "TMDB_API_KEY"),
    )
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_image_base_url: str = Field(
        default="https://image.tmdb.org/t/p/w500", alias="TMDB_IMAGE_BASE_URL"
    )
    tmdb_movie_limit: int = Field(
        default=200, alias="TMDB_MOVIE_LIMIT", ge=1, le=1_000
    )
    tmdb_fetch_credits: bool = Field(default=True, alias="TMDB_FETCH_CREDITS")

    default_sort: SortKey = Field(default=SortKey.TITLE_ASC, alias="DEFAULT_SORT")

    cors_origins_raw: str = Field(
        default=",".join(DEFAULT_CORS_ORIGINS), alias="CORS_ORIGINS"
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("default_sort", mode="before")
    @classmethod
    def _parse_default_sort(cls, value: object) -> SortKey:
        """Accept any spelling of a sort token, rejecting unknown ones."""

        if value is None or (isinstance(value, str) and not value.strip()):
            return SortKey.TITLE_ASC
        if isinstance(value, (str, SortKey)):
            return SortKey.from_token(value)
        raise TypeError("DEFAULT_SORT must be a sort key token")

    @field_validator("cors_origins_raw", mode="before")
    @classmethod
    def _join_cors_origins(cls, value: object) -> str:
        """Allow origins to be supplied as a list as well as a CSV string."""

        if value is None:
            return ",".join(DEFAULT_CORS_ORIGINS)
        if isinstance(value, str):
            return value
        if isinstance(value, Iterable):
            return ",".join(str(part).strip() for part in value)
        raise TypeError("CORS_ORIGINS must be a string or iterable of strings")

    @property
    def cors_origins(self) -> tuple[str, ...]:
        """Return the de-duplicated list of allowed CORS origins."""

        cleaned = split_csv(self.cors_origins_raw)
        return tuple(dict.fromkeys(cleaned)) or DEFAULT_CORS_ORIGINS

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
