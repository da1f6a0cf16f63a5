"""MovieFeaster: browse, filter, sort and rate popular movies."""

from __future__ import annotations

__version__ = "1.0.0"
