"""Coordinate value types.

All angles are decimal degrees. Constructors validate their ranges and raise
InvalidInputError instead of clamping.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple

from skyview.errors import InvalidInputError


def normalize_deg(angle: float) -> float:
    """Reduce an angle to [0, 360)."""
    reduced = angle % 360.0
    # -1e-17 % 360 rounds to 360.0
    return 0.0 if reduced == 360.0 else reduced


def _check_range(label: str, value: float, low: float, high: float, *, high_open: bool) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"{label} must be a number, got {value!r}") from exc
    inside = low <= value < high if high_open else low <= value <= high
    if math.isnan(value) or not inside:
        bracket = ")" if high_open else "]"
        raise InvalidInputError(f"{label} must be in [{low:g}, {high:g}{bracket}, got {value}")
    return value


def is_valid_lon_deg(lon: float) -> bool:
    return -180.0 <= lon < 180.0


def is_valid_lat_deg(lat: float) -> bool:
    return -90.0 <= lat <= 90.0


class PlanePoint(NamedTuple):
    """Cartesian point on the projection plane (or on the canvas, in pixels)."""

    x: float
    y: float


@dataclass(frozen=True)
class GeographicCoordinates:
    lon_deg: float
    lat_deg: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "lon_deg", _check_range("longitude", self.lon_deg, -180.0, 180.0, high_open=True))
        object.__setattr__(self, "lat_deg", _check_range("latitude", self.lat_deg, -90.0, 90.0, high_open=False))

    def __str__(self) -> str:
        return f"(lon={self.lon_deg:.4f}°, lat={self.lat_deg:.4f}°)"


@dataclass(frozen=True)
class EquatorialCoordinates:
    ra_deg: float
    dec_deg: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "ra_deg", _check_range("right ascension", self.ra_deg, 0.0, 360.0, high_open=True))
        object.__setattr__(self, "dec_deg", _check_range("declination", self.dec_deg, -90.0, 90.0, high_open=False))

    @property
    def ra_hours(self) -> float:
        return self.ra_deg / 15.0

    def __str__(self) -> str:
        return f"(ra={self.ra_hours:.4f}h, dec={self.dec_deg:.4f}°)"


@dataclass(frozen=True)
class EclipticCoordinates:
    lon_deg: float
    lat_deg: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "lon_deg", _check_range("ecliptic longitude", self.lon_deg, 0.0, 360.0, high_open=True))
        object.__setattr__(self, "lat_deg", _check_range("ecliptic latitude", self.lat_deg, -90.0, 90.0, high_open=False))

    def __str__(self) -> str:
        return f"(λ={self.lon_deg:.4f}°, β={self.lat_deg:.4f}°)"


@dataclass(frozen=True)
class HorizontalCoordinates:
    """Azimuth measured from North towards East, altitude above the horizon."""

    az_deg: float
    alt_deg: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "az_deg", _check_range("azimuth", self.az_deg, 0.0, 360.0, high_open=True))
        object.__setattr__(self, "alt_deg", _check_range("altitude", self.alt_deg, -90.0, 90.0, high_open=False))

    def __str__(self) -> str:
        return f"(az={self.az_deg:.4f}°, alt={self.alt_deg:.4f}°)"


__all__ = [
    "EclipticCoordinates",
    "EquatorialCoordinates",
    "GeographicCoordinates",
    "HorizontalCoordinates",
    "PlanePoint",
    "is_valid_lat_deg",
    "is_valid_lon_deg",
    "normalize_deg",
]
