"""Serialisation formats offered by the export endpoint."""

from __future__ import annotations

import csv
import io
import json
import xml.etree.ElementTree as ET

import pytest

from app.export import ExportFormat, export_movies, format_movie


def test_missing_or_unknown_format_falls_back_to_pretty_text(nolan_movies) -> None:
    assert ExportFormat.parse("yaml") is ExportFormat.PRETTY
    assert ExportFormat.parse(None) is ExportFormat.PRETTY
    assert ExportFormat.parse(" JSON ") is ExportFormat.JSON

    payload = export_movies(nolan_movies, "yaml")
    assert payload.media_type == "text/plain"
    assert payload.filename == "movies.txt"
    assert payload.content.decode().count("-------------------") == 2


def test_from_token_is_strict() -> None:
    assert ExportFormat.from_token(" XML ") is ExportFormat.XML
    with pytest.raises(ValueError, match="Unknown export format"):
        ExportFormat.from_token("yaml")


def test_pretty_block_lists_comments_and_app_rating(nolan_movies) -> None:
    movie = nolan_movies[1]
    movie.add_comment("Why so serious?")
    movie.add_rating(5.0)
    movie.add_rating(4.0)

    block = format_movie(movie)

    assert "Title: The Dark Knight" in block
    assert "Directors: Christopher Nolan" in block
    assert "Genres: ACTION; CRIME; DRAMA" in block
    assert "  - Why so serious?" in block
    assert "App Rating: 4.5" in block


def test_pretty_block_marks_missing_people_as_unknown(library) -> None:
    block = format_movie(library[-1])

    assert "Directors: Unknown" in block
    assert "Cast: Unknown" in block
    assert "Comments:" not in block
    assert "Poster:" not in block


def test_json_export_contains_user_contributions(library) -> None:
    payload = export_movies(library[:1], ExportFormat.JSON)

    data = json.loads(payload.content)
    assert payload.media_type == "application/json"
    assert data[0]["title"] == "Alien"
    assert data[0]["comments"] == ["Still terrifying"]
    assert data[0]["in_app_rating"] == 5.0


def test_csv_export_quotes_fields_with_commas(library) -> None:
    movie = library[1]
    movie.add_comment("Tense, brilliant")

    payload = export_movies([movie], "csv")
    rows = list(csv.reader(io.StringIO(payload.content.decode())))

    assert rows[0][0] == "Title"
    assert len(rows[0]) == 10
    assert rows[1][:3] == ["Heat", "1995", "8.3"]
    assert rows[1][4] == "Michael Mann"
    assert rows[1][6] == "Al Pacino; Robert De Niro"
    assert rows[1][7] == "Tense, brilliant"
    assert '"Tense, brilliant"' in payload.content.decode()


@pytest.mark.parametrize("fmt", ["xml", ExportFormat.XML])
def test_xml_export_is_well_formed(library, fmt) -> None:
    payload = export_movies(library[:2], fmt)
    root = ET.fromstring(payload.content)

    assert payload.filename == "movies.xml"
    assert root.tag == "movies"
    assert [node.get("id") for node in root.findall("movie")] == ["10", "11"]
    assert [node.text for node in root.find("movie").find("genres")] == [
        "HORROR",
        "SCIENCE_FICTION",
    ]
