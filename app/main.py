"""Entry point for the FastAPI-powered movie catalog."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, Iterable

import httpx
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import ValidationError

from .config import settings
from .export import ExportFormat, export_movies
from .filters import InvalidCriterionError
from .models import Genre, MovieRecord
from .query import CommentSubmission, RatingSubmission, SearchQuery
from .services.catalog import CatalogService, MovieNotFoundError
from .services.tmdb import TMDBClient
from .sorting import SortKey

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    tmdb_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.tmdb_api_url),
            timeout=httpx.Timeout(20.0, connect=10.0),
        )
    )
    tmdb = TMDBClient(settings, tmdb_http_client)
    movies = await tmdb.fetch_movies()
    logger.info("Starting catalog with %d movies", len(movies))

    fastapi_app.state.catalog_service = CatalogService(
        movies, default_sort_key=settings.default_sort
    )

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Browse, filter, sort and rate popular movies from TMDB",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_catalog_service(app: FastAPI) -> CatalogService:
    service = getattr(app.state, "catalog_service", None)
    if not isinstance(service, CatalogService):
        raise RuntimeError("Catalog service not initialised")
    return service


def _serialize(movies: Iterable[MovieRecord]) -> list[dict[str, Any]]:
    return [movie.model_dump(mode="json") for movie in movies]


def register_routes(fastapi_app: FastAPI) -> None:
    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/api/movies")
    async def list_movies() -> list[dict[str, Any]]:
        service = get_catalog_service(fastapi_app)
        return _serialize(service.get_original())

    @fastapi_app.get("/api/movies/search")
    async def search_movies(request: Request) -> list[dict[str, Any]]:
        service = get_catalog_service(fastapi_app)
        try:
            query = SearchQuery.from_request(request.query_params)
            criteria = query.criteria()
        except ValidationError as exc:
            raise HTTPException(
                status_code=400,
                detail=exc.errors(include_url=False, include_context=False),
            ) from exc
        except InvalidCriterionError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        movies = service.search(criteria)
        if query.sort is not None:
            movies = service.sort(query.sort)
        return _serialize(movies)

    @fastapi_app.get("/api/movies/sort")
    async def sort_movies(
        sort_type: str = Query(alias="sortType"),
    ) -> list[dict[str, Any]]:
        service = get_catalog_service(fastapi_app)
        try:
            key = SortKey.from_token(sort_type)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _serialize(service.sort(key))

    @fastapi_app.get("/api/movies/genres")
    async def list_genres() -> list[str]:
        return [genre.name for genre in Genre]

    @fastapi_app.get("/api/movies/export")
    async def export(fmt: str = Query(default="pretty", alias="format")) -> Response:
        try:
            export_format = ExportFormat.from_token(fmt)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        service = get_catalog_service(fastapi_app)
        movies = service.get_processed() or service.get_original()
        payload = export_movies(movies, export_format)
        return Response(
            content=payload.content,
            media_type=payload.media_type,
            headers={
                "Content-Disposition": f"attachment; filename={payload.filename}"
            },
        )

    @fastapi_app.get("/api/movies/{movie_id}")
    async def get_movie(movie_id: int) -> dict[str, Any]:
        service = get_catalog_service(fastapi_app)
        try:
            movie = service.get_movie(movie_id)
        except MovieNotFoundError as exc:
            raise HTTPException(status_code=404, detail=exc.args[0]) from exc
        return movie.model_dump(mode="json")

    @fastapi_app.post("/api/movies/{movie_id}/comment")
    async def submit_comment(
        movie_id: int, submission: CommentSubmission
    ) -> dict[str, Any]:
        service = get_catalog_service(fastapi_app)
        if not service.update_comment(movie_id, submission.comment):
            raise HTTPException(status_code=404, detail=f"Movie {movie_id} not found")
        return {"movie_id": movie_id, "comment": submission.comment}

    @fastapi_app.post("/api/movies/{movie_id}/rating")
    async def submit_rating(
        movie_id: int, submission: RatingSubmission
    ) -> dict[str, Any]:
        service = get_catalog_service(fastapi_app)
        if not service.update_rating(movie_id, submission.rating):
            raise HTTPException(status_code=404, detail=f"Movie {movie_id} not found")
        movie = service.get_movie(movie_id)
        return {"movie_id": movie_id, "in_app_rating": movie.average_rating()}


app = create_app()
