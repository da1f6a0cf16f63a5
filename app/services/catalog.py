"""In-memory catalog holding the ingested movies and the current view."""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Mapping

from ..filters import apply_filters
from ..models import MovieRecord
from ..sorting import SortKey, sort_records

logger = logging.getLogger(__name__)


class MovieNotFoundError(KeyError):
    """Raised when a movie id has no matching record in the catalog."""

    def __init__(self, movie_id: int) -> None:
        super().__init__(f"Movie {movie_id} not found")
        self.movie_id = movie_id


class CatalogService:
    """Owns the authoritative movie list and the derived "processed" view.

    ``original`` is installed once by :meth:`load` and never reordered.
    ``processed`` is replaced wholesale by :meth:`search`, :meth:`sort` and
    :meth:`reset`. Each of those reads its inputs, derives the new view and
    swaps it in while holding the catalog lock, so a concurrent call can never
    be overwritten by a view derived from stale state. Comment and rating
    appends lock the single record.
    """

    def __init__(
        self,
        movies: Iterable[MovieRecord] | None = None,
        *,
        default_sort_key: SortKey | str = SortKey.TITLE_ASC,
    ) -> None:
        self._lock = threading.Lock()
        self._default_sort_key = SortKey.from_token(default_sort_key)
        self._original: tuple[MovieRecord, ...] = ()
        self._processed: tuple[MovieRecord, ...] = ()
        self.load(movies or ())

    @property
    def default_sort_key(self) -> SortKey:
        with self._lock:
            return self._default_sort_key

    @default_sort_key.setter
    def default_sort_key(self, key: SortKey | str) -> None:
        resolved = SortKey.from_token(key)
        with self._lock:
            self._default_sort_key = resolved

    def load(self, movies: Iterable[MovieRecord]) -> None:
        """Install a freshly ingested collection; an empty one is valid."""

        original = tuple(movies)
        with self._lock:
            self._original = original
            self._processed = tuple(
                sort_records(original, self._default_sort_key)
            )
        logger.info("Catalog loaded with %d movies", len(original))

    def get_original(self) -> tuple[MovieRecord, ...]:
        return self._original

    def get_processed(self) -> tuple[MovieRecord, ...]:
        with self._lock:
            return self._processed

    def search(
        self, criteria: Mapping[object, object] | None = None
    ) -> tuple[MovieRecord, ...]:
        """Filter the full catalog, then order it by the default sort key."""

        with self._lock:
            filtered = apply_filters(self._original, criteria)
            processed = tuple(sort_records(filtered, self._default_sort_key))
            self._processed = processed
        logger.debug(
            "Search with %d criteria matched %d movies",
            len(criteria or {}),
            len(processed),
        )
        return processed

    def sort(self, key: SortKey | str) -> tuple[MovieRecord, ...]:
        """Re-order the current processed view; the last filter is kept."""

        key = SortKey.from_token(key)
        with self._lock:
            processed = tuple(sort_records(self._processed, key))
            self._processed = processed
        return processed

    def reset(self) -> tuple[MovieRecord, ...]:
        """Drop the current filter and show the whole catalog again."""

        return self.search(None)

    def find_movie(self, movie_id: int) -> MovieRecord | None:
        for movie in self._original:
            if movie.id == movie_id:
                return movie
        return None

    def get_movie(self, movie_id: int) -> MovieRecord:
        movie = self.find_movie(movie_id)
        if movie is None:
            raise MovieNotFoundError(movie_id)
        return movie

    def update_comment(self, movie_id: int, comment: str) -> bool:
        """Append ``comment`` to the movie; returns ``False`` for unknown ids."""

        movie = self.find_movie(movie_id)
        if movie is None:
            logger.info("Ignoring comment for unknown movie %s", movie_id)
            return False
        movie.add_comment(comment)
        return True

    def update_rating(self, movie_id: int, rating: float) -> bool:
        """Append ``rating`` to the movie; returns ``False`` for unknown ids."""

        movie = self.find_movie(movie_id)
        if movie is None:
            logger.info("Ignoring rating for unknown movie %s", movie_id)
            return False
        movie.add_rating(rating)
        return True
