"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


# Ensure the application package is importable when running tests without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.models import Genre, MovieRecord  # noqa: E402


def make_movie(movie_id: int, title: str, **overrides: object) -> MovieRecord:
    """Build a catalog record with sensible defaults for tests."""

    data: dict[str, object] = {
        "id": movie_id,
        "title": title,
        "year": 2000,
        "rating": 5.0,
    }
    data.update(overrides)
    return MovieRecord.model_validate(data)


@pytest.fixture
def nolan_movies() -> list[MovieRecord]:
    """The two-movie catalog shared by the filter and catalog tests."""

    return [
        make_movie(
            1,
            "Inception",
            year=2010,
            rating=8.8,
            directors=["Christopher Nolan"],
            castings=["Leonardo DiCaprio", "Elliot Page"],
            genres=[Genre.ACTION, Genre.SCIENCE_FICTION],
        ),
        make_movie(
            2,
            "The Dark Knight",
            year=2008,
            rating=9.0,
            directors=["Christopher Nolan"],
            castings=["Christian Bale", "Heath Ledger"],
            genres=[Genre.ACTION, Genre.CRIME, Genre.DRAMA],
        ),
    ]


@pytest.fixture
def library() -> list[MovieRecord]:
    """A slightly larger catalog with ties and gaps for ordering tests."""

    movies = [
        make_movie(10, "Alien", year=1979, rating=8.5, genres=[27, 878],
                   directors=["Ridley Scott"], castings=["Sigourney Weaver"]),
        make_movie(11, "Heat", year=1995, rating=8.3, genres=[80, 18],
                   directors=["Michael Mann"], castings=["Al Pacino", "Robert De Niro"]),
        make_movie(12, "Arrival", year=2016, rating=7.9, genres=[878, 18],
                   directors=["Denis Villeneuve"], castings=["Amy Adams"]),
        make_movie(13, "Blade Runner", year=1982, rating=8.1, genres=[878, 53],
                   directors=["Ridley Scott"], castings=["Harrison Ford"]),
        make_movie(14, "Collateral", year=2004, rating=7.5, genres=[80, 53],
                   directors=["Michael Mann"], castings=["Tom Cruise", "Jamie Foxx"]),
        make_movie(15, "Untitled Short", year=1500, rating=7.5),
    ]
    movies[0].add_comment("Still terrifying")
    movies[0].add_rating(5.0)
    movies[2].add_comment("Beautiful score")
    movies[2].add_rating(4.0)
    movies[2].add_rating(3.0)
    movies[4].add_rating(4.5)
    return movies
