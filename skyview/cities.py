"""Observer presets loaded from a simplemaps-style world cities CSV."""
from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from typing import TextIO

from skyview.coordinates import GeographicCoordinates
from skyview.errors import InvalidInputError

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class City:
    name: str
    country: str
    coordinates: GeographicCoordinates

    def __str__(self) -> str:
        return f"{self.name}, {self.country}"


def load_cities(stream: TextIO) -> list[City]:
    """Read ``city_ascii`` (or ``city``), ``country``, ``lat``, ``lng`` columns.

    Returns cities sorted by name. Rows with out-of-range coordinates raise
    InvalidInputError.
    """
    cities = []
    for lineno, row in enumerate(csv.DictReader(stream), start=2):
        name = (row.get("city_ascii") or row.get("city") or "").strip()
        if not name:
            continue
        try:
            lat = float(row["lat"])
            lon = float(row["lng"])
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidInputError(f"line {lineno}: bad coordinates for {name}") from exc
        # simplemaps writes 180.0 for a handful of Pacific cities
        if lon == 180.0:
            lon = -180.0
        cities.append(City(name, (row.get("country") or "").strip(), GeographicCoordinates(lon, lat)))
    cities.sort(key=lambda c: (c.name, c.country))
    LOG.info("Loaded %d cities", len(cities))
    return cities


def find_city(cities: list[City], name: str) -> City | None:
    """Case-insensitive match on 'Name' or 'Name, Country'."""
    key = name.strip().lower()
    for city in cities:
        if key in (city.name.lower(), str(city).lower()):
            return city
    return None


__all__ = ["City", "find_city", "load_cities"]
