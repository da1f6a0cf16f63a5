from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.main import register_routes
from app.services.catalog import CatalogService


def _client(movies) -> tuple[TestClient, CatalogService]:
    app = FastAPI()
    register_routes(app)
    service = CatalogService(movies)
    app.state.catalog_service = service
    return TestClient(app), service


def test_list_movies_returns_original_catalog(nolan_movies) -> None:
    client, _ = _client(nolan_movies)

    response = client.get("/api/movies")

    assert response.status_code == 200
    payload = response.json()
    assert [movie["id"] for movie in payload] == [1, 2]
    assert payload[0]["genres"] == ["ACTION", "SCIENCE_FICTION"]
    assert payload[0]["in_app_rating"] == 0.0


def test_search_filters_and_sorts(library) -> None:
    client, service = _client(library)

    response = client.get(
        "/api/movies/search", params={"director": "mann", "sort": "year_desc"}
    )

    assert response.status_code == 200
    assert [movie["id"] for movie in response.json()] == [14, 11]
    assert [movie.id for movie in service.get_processed()] == [14, 11]


def test_search_resolves_spaced_genre_names(library) -> None:
    client, _ = _client(library)

    response = client.get("/api/movies/search", params={"genre": "science fiction"})

    assert response.status_code == 200
    assert [movie["id"] for movie in response.json()] == [10, 12, 13]


def test_search_without_parameters_returns_everything(library) -> None:
    client, _ = _client(library)

    response = client.get("/api/movies/search")

    assert response.status_code == 200
    assert len(response.json()) == len(library)


def test_search_rejects_unknown_parameters(library) -> None:
    client, service = _client(library)
    before = service.get_processed()

    response = client.get("/api/movies/search", params={"budget": "high"})

    assert response.status_code == 400
    assert service.get_processed() == before


def test_sort_endpoint_composes_on_last_search(library) -> None:
    client, _ = _client(library)
    client.get("/api/movies/search", params={"minRating": "8.0"})

    response = client.get("/api/movies/sort", params={"sortType": "rating_asc"})

    assert response.status_code == 200
    assert [movie["id"] for movie in response.json()] == [13, 11, 10]


def test_sort_endpoint_rejects_unknown_key(library) -> None:
    client, _ = _client(library)

    response = client.get("/api/movies/sort", params={"sortType": "loudest"})

    assert response.status_code == 400


def test_genres_endpoint_lists_every_genre(library) -> None:
    client, _ = _client(library)

    response = client.get("/api/movies/genres")

    assert response.status_code == 200
    assert len(response.json()) == 19
    assert "SCIENCE_FICTION" in response.json()


def test_get_movie_by_id(nolan_movies) -> None:
    client, _ = _client(nolan_movies)

    assert client.get("/api/movies/2").json()["title"] == "The Dark Knight"
    assert client.get("/api/movies/999").status_code == 404


def test_comment_submission_round_trip(nolan_movies) -> None:
    client, service = _client(nolan_movies)

    response = client.post("/api/movies/1/comment", json={"comment": "Dream within a dream"})

    assert response.status_code == 200
    assert service.get_movie(1).comments == ("Dream within a dream",)


def test_blank_comment_is_rejected_without_mutation(nolan_movies) -> None:
    client, service = _client(nolan_movies)

    response = client.post("/api/movies/1/comment", json={"comment": "   "})

    assert response.status_code == 422
    assert service.get_movie(1).comments == ()


def test_rating_submission_updates_average(nolan_movies) -> None:
    client, _ = _client(nolan_movies)

    client.post("/api/movies/1/rating", json={"rating": 4.0})
    response = client.post("/api/movies/1/rating", json={"rating": 5.0})

    assert response.status_code == 200
    assert response.json() == {"movie_id": 1, "in_app_rating": 4.5}


def test_out_of_range_rating_is_rejected(nolan_movies) -> None:
    client, service = _client(nolan_movies)

    response = client.post("/api/movies/1/rating", json={"rating": 7})

    assert response.status_code == 422
    assert service.get_movie(1).user_ratings == ()


def test_submissions_for_unknown_movies_return_not_found(nolan_movies) -> None:
    client, _ = _client(nolan_movies)

    assert client.post("/api/movies/999/comment", json={"comment": "x"}).status_code == 404
    assert client.post("/api/movies/999/rating", json={"rating": 3}).status_code == 404


def test_export_uses_processed_view(library) -> None:
    client, _ = _client(library)
    client.get("/api/movies/search", params={"director": "scott"})

    response = client.get("/api/movies/export", params={"format": "csv"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "filename=movies.csv" in response.headers["content-disposition"]
    lines = response.text.strip().splitlines()
    assert len(lines) == 3
    assert lines[1].startswith("Alien,1979")


def test_healthcheck() -> None:
    app = FastAPI()
    register_routes(app)

    with TestClient(app) as client:
        assert client.get("/healthz").json() == {"status": "ok"}


def test_export_rejects_unknown_format(library) -> None:
    client, _ = _client(library)

    response = client.get("/api/movies/export", params={"format": "yaml"})

    assert response.status_code == 400
    assert "yaml" in response.json()["detail"]
