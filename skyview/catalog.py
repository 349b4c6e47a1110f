"""Star catalogue: ordered stars plus asterisms, and the HYG database loader."""
from __future__ import annotations

import csv
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Protocol, Sequence, TextIO

from skyview.coordinates import EquatorialCoordinates, normalize_deg
from skyview.errors import InvalidInputError
from skyview.objects import Star

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class Asterism:
    """Named group of stars, in drawing order."""

    stars: tuple[Star, ...]
    name: str = ""

    def __post_init__(self) -> None:
        if not self.stars:
            raise InvalidInputError("an asterism needs at least one star")
        object.__setattr__(self, "stars", tuple(self.stars))


class StarCatalogue:
    """Read-only catalogue. Star order defines the indices used by asterisms."""

    def __init__(self, stars: Sequence[Star], asterisms: Iterable[Asterism]) -> None:
        self._stars = tuple(stars)
        index_of: dict[Star, int] = {}
        for i, star in enumerate(self._stars):
            index_of.setdefault(star, i)
        self._asterisms: dict[Asterism, tuple[int, ...]] = {}
        for asterism in asterisms:
            try:
                self._asterisms[asterism] = tuple(index_of[s] for s in asterism.stars)
            except KeyError as exc:
                raise InvalidInputError(
                    f"asterism {asterism.name or '<unnamed>'} references a star "
                    f"missing from the catalogue: {exc.args[0].name}"
                ) from None

    @property
    def stars(self) -> tuple[Star, ...]:
        return self._stars

    @property
    def asterisms(self) -> frozenset[Asterism]:
        return frozenset(self._asterisms)

    def asterism_indices(self, asterism: Asterism) -> list[int]:
        """Catalogue indices of ``asterism``'s stars, in the asterism's order.

        Raises KeyError if the asterism is not part of this catalogue.
        """
        return list(self._asterisms[asterism])

    def __len__(self) -> int:
        return len(self._stars)


class CatalogueLoader(Protocol):
    def load(self, stream: TextIO, builder: "StarCatalogueBuilder") -> None: ...


class StarCatalogueBuilder:
    def __init__(self) -> None:
        self._stars: list[Star] = []
        self._asterisms: list[Asterism] = []

    def add_star(self, star: Star) -> "StarCatalogueBuilder":
        self._stars.append(star)
        return self

    def add_asterism(self, asterism: Asterism) -> "StarCatalogueBuilder":
        self._asterisms.append(asterism)
        return self

    @property
    def stars(self) -> tuple[Star, ...]:
        return tuple(self._stars)

    @property
    def asterisms(self) -> tuple[Asterism, ...]:
        return tuple(self._asterisms)

    def load_from(self, stream: TextIO, loader: CatalogueLoader) -> "StarCatalogueBuilder":
        loader.load(stream, self)
        return self

    def build(self) -> StarCatalogue:
        return StarCatalogue(self._stars, self._asterisms)


def _float(row: dict[str, str], key: str, default: float = 0.0) -> float:
    value = (row.get(key) or "").strip()
    return float(value) if value else default


class HygDatabaseLoader:
    """Reads the HYG database CSV (v3 or v4).

    Position comes from ``rarad``/``decrad`` when present, otherwise from
    ``ra`` (HOURS) and ``dec`` (degrees). The Sun's own row is skipped.
    """

    def load(self, stream: TextIO, builder: StarCatalogueBuilder) -> None:
        count = 0
        for row in csv.DictReader(stream):
            proper = (row.get("proper") or "").strip()
            if proper == "Sol":
                continue
            if not proper:
                bayer = (row.get("bayer") or "").strip()
                con = (row.get("con") or "").strip()
                proper = f"{bayer} {con}" if bayer else "?"

            if (row.get("rarad") or "").strip():
                ra_deg = math.degrees(_float(row, "rarad"))
                dec_deg = math.degrees(_float(row, "decrad"))
            else:
                ra_deg = _float(row, "ra") * 15.0       # CRITICAL CONVERSION
                dec_deg = _float(row, "dec")

            hip = (row.get("hip") or "").strip()
            builder.add_star(Star(
                hipparcos_id=int(float(hip)) if hip else 0,
                name=proper,
                equatorial_pos=EquatorialCoordinates(normalize_deg(ra_deg), dec_deg),
                magnitude=_float(row, "mag"),
                color_index=_float(row, "ci"),
            ))
            count += 1
        LOG.debug("HYG loader read %d stars", count)


HYG_LOADER = HygDatabaseLoader()

_cache: dict[tuple[Path, Path], StarCatalogue] = {}


def load_catalogue(stars_path: Path, asterisms_path: Path | None = None) -> StarCatalogue:
    """Load the HYG star file and, optionally, the asterism file. Cached per path pair.

    Raises FileNotFoundError if a file does not exist.
    """
    from skyview.constellations import ASTERISM_LOADER

    key = (Path(stars_path), Path(asterisms_path) if asterisms_path else Path())
    if key not in _cache:
        builder = StarCatalogueBuilder()
        with open(stars_path, newline="", encoding="utf-8") as f:
            builder.load_from(f, HYG_LOADER)
        if asterisms_path is not None:
            with open(asterisms_path, encoding="utf-8") as f:
                builder.load_from(f, ASTERISM_LOADER)
        catalogue = builder.build()
        LOG.info("Loaded %d stars and %d asterisms", len(catalogue), len(catalogue.asterisms))
        _cache[key] = catalogue
    return _cache[key]


__all__ = [
    "Asterism",
    "CatalogueLoader",
    "HYG_LOADER",
    "HygDatabaseLoader",
    "StarCatalogue",
    "StarCatalogueBuilder",
    "load_catalogue",
]
