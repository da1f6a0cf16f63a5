"""Serialisation of movie lists for download."""

from __future__ import annotations

import csv
import io
import json
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from .models import MovieRecord

CSV_HEADER = (
    "Title",
    "Year",
    "Rating",
    "Overview",
    "Directors",
    "Genres",
    "Castings",
    "Comments",
    "InAppRating",
    "ImgUrl",
)
LIST_SEPARATOR = "; "
PRETTY_SEPARATOR = "-------------------"


class ExportFormat(str, Enum):
    PRETTY = "pretty"
    JSON = "json"
    CSV = "csv"
    XML = "xml"

    @classmethod
    def from_token(cls, token: str) -> "ExportFormat":
        try:
            return cls(token.strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unknown export format: {token!r}") from exc

    @classmethod
    def parse(cls, value: str | None) -> "ExportFormat":
        """Return the matching format, falling back to pretty text."""

        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.PRETTY


@dataclass(slots=True)
class ExportPayload:
    content: bytes
    media_type: str
    filename: str


def format_movie(movie: MovieRecord) -> str:
    """Return a human-readable block describing ``movie``."""

    lines = [
        f"Title: {movie.title}",
        f"Year: {movie.year}",
        f"Rating: {movie.rating}",
        f"Overview: {movie.overview}",
        f"Directors: {_join(movie.directors) or 'Unknown'}",
        f"Genres: {_join(movie.genre_names()) or 'Unknown'}",
        f"Cast: {_join(movie.castings) or 'Unknown'}",
    ]
    comments = movie.comments
    if comments:
        lines.append("Comments:")
        lines.extend(f"  - {comment}" for comment in comments)
    lines.append(f"App Rating: {movie.average_rating():.1f}")
    if movie.img_url:
        lines.append(f"Poster: {movie.img_url}")
    return "\n".join(lines) + "\n"


def format_movie_list(movies: Sequence[MovieRecord]) -> str:
    return "".join(
        f"\n{format_movie(movie)}{PRETTY_SEPARATOR}\n" for movie in movies
    )


def to_json(movies: Sequence[MovieRecord]) -> str:
    return json.dumps(
        [movie.model_dump(mode="json") for movie in movies],
        indent=2,
        ensure_ascii=False,
    )


def to_csv(movies: Sequence[MovieRecord]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for movie in movies:
        writer.writerow(
            [
                movie.title,
                movie.year,
                f"{movie.rating:.1f}",
                movie.overview,
                _join(movie.directors),
                _join(movie.genre_names()),
                _join(movie.castings),
                _join(movie.comments),
                f"{movie.average_rating():.1f}",
                movie.img_url,
            ]
        )
    return buffer.getvalue()


def to_xml(movies: Sequence[MovieRecord]) -> str:
    root = ET.Element("movies")
    for movie in movies:
        node = ET.SubElement(root, "movie", id=str(movie.id))
        ET.SubElement(node, "title").text = movie.title
        ET.SubElement(node, "year").text = str(movie.year)
        ET.SubElement(node, "rating").text = str(movie.rating)
        ET.SubElement(node, "overview").text = movie.overview
        _append_list(node, "directors", "director", movie.directors)
        _append_list(node, "genres", "genre", movie.genre_names())
        _append_list(node, "castings", "casting", movie.castings)
        _append_list(node, "comments", "comment", movie.comments)
        ET.SubElement(node, "inAppRating").text = str(movie.average_rating())
        ET.SubElement(node, "imgUrl").text = movie.img_url
    ET.indent(root)
    return ET.tostring(root, encoding="utf-8", xml_declaration=True).decode("utf-8")


def export_movies(
    movies: Sequence[MovieRecord], fmt: ExportFormat | str | None
) -> ExportPayload:
    """Render ``movies`` in the requested format ready to be downloaded."""

    if not isinstance(fmt, ExportFormat):
        fmt = ExportFormat.parse(fmt)
    if fmt is ExportFormat.JSON:
        return ExportPayload(to_json(movies).encode(), "application/json", "movies.json")
    if fmt is ExportFormat.CSV:
        return ExportPayload(to_csv(movies).encode(), "text/csv", "movies.csv")
    if fmt is ExportFormat.XML:
        return ExportPayload(to_xml(movies).encode(), "application/xml", "movies.xml")
    return ExportPayload(
        format_movie_list(movies).encode(), "text/plain", "movies.txt"
    )


def _join(values: Sequence[str]) -> str:
    return LIST_SEPARATOR.join(values)


def _append_list(
    parent: ET.Element, wrapper: str, tag: str, values: Sequence[str]
) -> None:
    container = ET.SubElement(parent, wrapper)
    for value in values:
        ET.SubElement(container, tag).text = value
