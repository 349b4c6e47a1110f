"""Celestial object variants.

``CelestialObject`` is a closed union of four frozen dataclasses. Consumers
dispatch with ``match`` (see ``object_kind`` and ``skyview.labels.describe``).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from skyview.coordinates import EclipticCoordinates, EquatorialCoordinates
from skyview.errors import InvalidInputError

SUN_MAGNITUDE = -26.7


def _validate_common(name: str, equatorial_pos: object, angular_size: float) -> None:
    if not name:
        raise InvalidInputError("celestial object name must not be empty")
    if not isinstance(equatorial_pos, EquatorialCoordinates):
        raise InvalidInputError(f"equatorial position required, got {equatorial_pos!r}")
    if angular_size < 0:
        raise InvalidInputError(f"angular size must be non-negative, got {angular_size}")


@dataclass(frozen=True)
class Sun:
    ecliptic_pos: EclipticCoordinates
    equatorial_pos: EquatorialCoordinates
    angular_size: float
    mean_anomaly: float         # radians
    name: str = field(default="Sun", init=False)
    magnitude: float = field(default=SUN_MAGNITUDE, init=False)

    def __post_init__(self) -> None:
        _validate_common(self.name, self.equatorial_pos, self.angular_size)
        if not isinstance(self.ecliptic_pos, EclipticCoordinates):
            raise InvalidInputError(f"ecliptic position required, got {self.ecliptic_pos!r}")


@dataclass(frozen=True)
class Moon:
    equatorial_pos: EquatorialCoordinates
    angular_size: float
    phase: float                # illuminated fraction, 0..1
    name: str = field(default="Moon", init=False)
    magnitude: float = field(default=0.0, init=False)

    def __post_init__(self) -> None:
        _validate_common(self.name, self.equatorial_pos, self.angular_size)
        if not 0.0 <= self.phase <= 1.0:
            raise InvalidInputError(f"moon phase must be in [0, 1], got {self.phase}")


@dataclass(frozen=True)
class Planet:
    name: str
    equatorial_pos: EquatorialCoordinates
    angular_size: float
    magnitude: float

    def __post_init__(self) -> None:
        _validate_common(self.name, self.equatorial_pos, self.angular_size)


@dataclass(frozen=True)
class Star:
    hipparcos_id: int
    name: str
    equatorial_pos: EquatorialCoordinates
    magnitude: float
    color_index: float          # B-V
    angular_size: float = field(default=0.0, init=False)

    def __post_init__(self) -> None:
        _validate_common(self.name, self.equatorial_pos, self.angular_size)
        if self.hipparcos_id < 0:
            raise InvalidInputError(f"Hipparcos id must be non-negative, got {self.hipparcos_id}")
        if not -0.5 <= self.color_index <= 5.5:
            raise InvalidInputError(f"B-V color index must be in [-0.5, 5.5], got {self.color_index}")

    @property
    def color_temperature(self) -> int:
        """Approximate effective temperature in kelvin (Ballesteros' formula)."""
        c = 0.92 * self.color_index
        return int(4600.0 * (1.0 / (c + 1.7) + 1.0 / (c + 0.62)))


CelestialObject = Union[Sun, Moon, Planet, Star]


def object_kind(obj: CelestialObject) -> str:
    """Return 'sun', 'moon', 'planet' or 'star'."""
    match obj:
        case Sun():
            return "sun"
        case Moon():
            return "moon"
        case Planet():
            return "planet"
        case Star():
            return "star"
        case _:
            raise TypeError(f"not a celestial object: {obj!r}")


__all__ = [
    "CelestialObject",
    "Moon",
    "Planet",
    "SUN_MAGNITUDE",
    "Star",
    "Sun",
    "object_kind",
]
