"""Ingestion of popular movies from The Movie Database (TMDB)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..models import Genre, MovieRecord

logger = logging.getLogger(__name__)

DISCOVER_PATH = "/discover/movie"
CREDITS_PATH = "/movie/{movie_id}/credits"
PAGE_SIZE = 20


@dataclass(slots=True)
class TMDBMovieSummary:
    """Normalized view of a TMDB discover result."""

    tmdb_id: int
    title: str | None
    overview: str | None
    release_date: str | None
    vote_average: float | None
    genre_ids: list[int] = field(default_factory=list)
    poster_path: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "TMDBMovieSummary | None":
        raw_id = payload.get("id")
        if isinstance(raw_id, bool) or not isinstance(raw_id, int):
            return None
        raw_genres = payload.get("genre_ids") or []
        return cls(
            tmdb_id=raw_id,
            title=payload.get("title") or payload.get("original_title"),
            overview=payload.get("overview"),
            release_date=payload.get("release_date"),
            vote_average=payload.get("vote_average"),
            genre_ids=[value for value in raw_genres if isinstance(value, int)],
            poster_path=payload.get("poster_path"),
        )

    @property
    def year(self) -> int:
        value = self.release_date
        if not isinstance(value, str) or len(value) < 4:
            return 0
        try:
            return int(value[:4])
        except ValueError:
            return 0


@dataclass(slots=True)
class TMDBCredits:
    directors: list[str] = field(default_factory=list)
    castings: list[str] = field(default_factory=list)


class TMDBClient:
    """Client that pulls the most popular movies and their credits."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    @property
    def configured(self) -> bool:
        return bool(self._settings.tmdb_api_token)

    async def fetch_movies(self, limit: int | None = None) -> list[MovieRecord]:
        """Return up to ``limit`` popular movies as catalog records.

        A failing discover page ends paging but keeps the pages already
        read, and a movie whose fields cannot be validated is skipped. Every
        failure is logged; callers never see an exception from here.
        """

        if not self.configured:
            logger.warning("TMDB API token missing; starting with an empty catalog")
            return []

        limit = limit or self._settings.tmdb_movie_limit
        try:
            summaries = await self._discover(limit)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("TMDB discover request failed: %s", exc)
            return []
        except Exception:  # pragma: no cover - defensive logging branch
            logger.exception("Unexpected failure while discovering TMDB movies")
            return []

        movies: list[MovieRecord] = []
        for summary in summaries:
            credits = TMDBCredits()
            if self._settings.tmdb_fetch_credits:
                credits = await self._fetch_credits(summary.tmdb_id)
            try:
                movies.append(self._build_record(summary, credits))
            except ValidationError as exc:
                logger.warning(
                    "Skipping TMDB movie %s with unusable data: %s",
                    summary.tmdb_id,
                    exc.errors(include_url=False),
                )

        logger.info("Fetched %d movies from TMDB", len(movies))
        return movies

    async def _discover(self, limit: int) -> list[TMDBMovieSummary]:
        """Page through the discover endpoint until ``limit`` summaries."""

        summaries: list[TMDBMovieSummary] = []
        seen: set[int] = set()
        total_pages = -(-limit // PAGE_SIZE)

        for page in range(1, total_pages + 1):
            try:
                response = await self._client.get(
                    DISCOVER_PATH,
                    params={
                        "include_adult": "false",
                        "include_video": "false",
                        "language": "en-US",
                        "sort_by": "popularity.desc",
                        "page": page,
                    },
                    headers=self._headers(),
                )
            except httpx.HTTPError as exc:
                logger.warning("TMDB discover page %s failed: %s", page, exc)
                break
            if response.status_code >= 400:
                logger.warning(
                    "TMDB discover page %s failed: HTTP %s", page, response.status_code
                )
                continue
            try:
                payload = response.json()
            except ValueError:
                logger.warning("TMDB discover page %s was not valid JSON", page)
                break
            results = payload.get("results") if isinstance(payload, dict) else None
            if not isinstance(results, list) or not results:
                break
            for entry in results:
                if not isinstance(entry, dict):
                    continue
                summary = TMDBMovieSummary.from_payload(entry)
                if summary is None or summary.tmdb_id in seen:
                    continue
                seen.add(summary.tmdb_id)
                summaries.append(summary)
                if len(summaries) >= limit:
                    return summaries
        return summaries

    async def _fetch_credits(self, movie_id: int) -> TMDBCredits:
        """Fetch directors and cast for a movie; empty on failure."""

        try:
            response = await self._client.get(
                CREDITS_PATH.format(movie_id=movie_id), headers=self._headers()
            )
        except httpx.HTTPError as exc:
            logger.warning("TMDB credits request for %s failed: %s", movie_id, exc)
            return TMDBCredits()
        if response.status_code >= 400:
            logger.debug(
                "TMDB credits fetch failed for %s: HTTP %s",
                movie_id,
                response.status_code,
            )
            return TMDBCredits()

        try:
            payload = response.json()
        except ValueError:
            logger.warning("TMDB credits for %s were not valid JSON", movie_id)
            return TMDBCredits()
        crew = payload.get("crew") or []
        cast = payload.get("cast") or []
        directors = [
            str(member["name"])
            for member in crew
            if isinstance(member, dict)
            and member.get("job") == "Director"
            and member.get("name")
        ]
        castings = [
            str(member["name"])
            for member in cast
            if isinstance(member, dict) and member.get("name")
        ]
        return TMDBCredits(directors=directors, castings=castings)

    def _build_record(
        self, summary: TMDBMovieSummary, credits: TMDBCredits
    ) -> MovieRecord:
        genres = [
            genre
            for genre in (Genre.from_id(code) for code in summary.genre_ids)
            if genre is not None
        ]
        return MovieRecord(
            id=summary.tmdb_id,
            title=summary.title,
            directors=credits.directors,
            year=summary.year,
            rating=summary.vote_average,
            genres=genres,
            overview=summary.overview,
            castings=credits.castings,
            img_url=self._build_image_url(summary.poster_path),
        )

    def _headers(self) -> dict[str, str]:
        return {
            "accept": "application/json",
            "Authorization": f"Bearer {self._settings.tmdb_api_token}",
        }

    def _build_image_url(self, path: str | None) -> str:
        if not path:
            return ""
        if path.startswith("http"):
            return path
        return f"{self._settings.tmdb_image_base_url}{path}"
