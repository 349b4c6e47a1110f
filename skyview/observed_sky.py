"""Immutable, fully projected view of the sky for one (time, place, projection, catalogue).

Build one with :func:`build_observed_sky`. Every tracked object gets exactly
one plane position. Objects are enumerated in a fixed order (Sun, Moon,
planets in model order, stars in catalogue order), and that order is the
tie-break of :meth:`ObservedSky.object_closest_to`.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from skyview.catalog import Asterism, StarCatalogue
from skyview.coordinates import GeographicCoordinates, PlanePoint
from skyview.ephemeris import DEFAULT_MODELS, EphemerisModels, Epoch
from skyview.errors import InvalidInputError
from skyview.objects import CelestialObject, Moon, Planet, Star, Sun
from skyview.projection import (
    EclipticToEquatorialConversion,
    EquatorialToHorizontalConversion,
    StereographicProjection,
)

LOG = logging.getLogger(__name__)

# Row layout of ObservedSky.positions
_SUN_ROW = 0
_MOON_ROW = 1
_FIRST_PLANET_ROW = 2


class ObservedSky:
    """One snapshot of the sky. Never mutated; rebuild when an input changes.

    Prefer :func:`build_observed_sky`; the constructor takes already
    projected positions, ``positions[i]`` being the plane position of
    ``objects[i]`` with objects ordered Sun, Moon, planets, stars.
    """

    def __init__(
        self,
        sun: Sun,
        moon: Moon,
        planets: Sequence[Planet],
        catalogue: StarCatalogue,
        positions: NDArray[np.float64],
        *,
        when: datetime | None = None,
        where: GeographicCoordinates | None = None,
    ) -> None:
        self._planets = tuple(planets)
        self._catalogue = catalogue
        self._objects: tuple[CelestialObject, ...] = (sun, moon, *self._planets, *catalogue.stars)

        positions = np.array(positions, dtype=float)
        if positions.shape != (len(self._objects), 2):
            raise InvalidInputError(
                f"expected {len(self._objects)} plane positions, got array of shape {positions.shape}"
            )
        positions.setflags(write=False)
        self._positions = positions
        self._index = {obj: i for i, obj in reversed(list(enumerate(self._objects)))}
        self.when = when
        self.where = where

    # -- Sun / Moon --

    @property
    def sun(self) -> Sun:
        """The Sun at this instant."""
        return self._objects[_SUN_ROW]

    @property
    def sun_position(self) -> PlanePoint:
        """Plane position of the Sun."""
        return PlanePoint(*self._positions[_SUN_ROW])

    @property
    def moon(self) -> Moon:
        """The Moon at this instant, with its phase."""
        return self._objects[_MOON_ROW]

    @property
    def moon_position(self) -> PlanePoint:
        """Plane position of the Moon."""
        return PlanePoint(*self._positions[_MOON_ROW])

    # -- Planets --

    @property
    def planets(self) -> tuple[Planet, ...]:
        """Planets in model order, the observer's own planet left out."""
        return self._planets

    def planet_positions(self) -> NDArray[np.float64]:
        """Flat array x0, y0, x1, y1, ... mirroring :attr:`planets`."""
        end = _FIRST_PLANET_ROW + len(self._planets)
        return self._positions[_FIRST_PLANET_ROW:end].reshape(-1).copy()

    # -- Stars --

    @property
    def catalogue(self) -> StarCatalogue:
        """The star catalogue this sky was built from (shared, not copied)."""
        return self._catalogue

    @property
    def stars(self) -> tuple[Star, ...]:
        """Catalogue stars, in catalogue order."""
        return self._catalogue.stars

    def star_positions(self) -> NDArray[np.float64]:
        """Flat array x0, y0, x1, y1, ... mirroring :attr:`stars`."""
        start = _FIRST_PLANET_ROW + len(self._planets)
        return self._positions[start:].reshape(-1).copy()

    @property
    def asterisms(self) -> frozenset[Asterism]:
        """Asterisms of the catalogue."""
        return self._catalogue.asterisms

    def asterism_indices(self, asterism: Asterism) -> list[int]:
        """Indices into :attr:`stars` of the stars forming ``asterism``."""
        return self._catalogue.asterism_indices(asterism)

    # -- All objects --

    @property
    def objects(self) -> tuple[CelestialObject, ...]:
        """Every tracked object, in enumeration order."""
        return self._objects

    @property
    def positions(self) -> NDArray[np.float64]:
        """Read-only (N, 2) array, row i is the plane position of ``objects[i]``."""
        return self._positions

    def position_of(self, obj: CelestialObject) -> PlanePoint | None:
        """Plane position of ``obj``, or None if it is not part of this sky."""
        i = self._index.get(obj)
        return None if i is None else PlanePoint(*self._positions[i])

    def items(self):
        """Iterate (object, plane position) pairs in enumeration order."""
        for obj, (x, y) in zip(self._objects, self._positions):
            yield obj, PlanePoint(float(x), float(y))

    def __len__(self) -> int:
        return len(self._objects)

    def object_closest_to(self, point: PlanePoint, max_distance: float) -> CelestialObject | None:
        """Object nearest to ``point`` and strictly closer than ``max_distance``, or None.

        Works on squared distances. Among objects at the same distance, the
        first one in enumeration order wins.
        """
        if max_distance < 0:
            raise InvalidInputError(f"max distance must be non-negative, got {max_distance}")
        if not self._objects:
            return None
        dx = self._positions[:, 0] - point[0]
        dy = self._positions[:, 1] - point[1]
        dist_sq = dx * dx + dy * dy
        # NaN (never closer) for objects projected to infinity
        dist_sq = np.where(np.isnan(dist_sq), np.inf, dist_sq)
        best = int(np.argmin(dist_sq))
        if dist_sq[best] < max_distance * max_distance:
            return self._objects[best]
        return None


def build_observed_sky(
    when: datetime,
    where: GeographicCoordinates,
    projection: StereographicProjection,
    catalogue: StarCatalogue,
    *,
    models: EphemerisModels = DEFAULT_MODELS,
) -> ObservedSky:
    """Project the Sun, the Moon, the planets (minus the home planet) and every star.

    Full pipeline:
        1. Build one ecliptic->equatorial and one equatorial->horizontal conversion
        2. Evaluate the Sun, Moon and planet models at the J2010 day offset
        3. Convert every equatorial position to horizontal in ONE batch
        4. Project everything stereographically

    Raises InvalidInputError for a naive ``when``, a ``where`` that is not
    a GeographicCoordinates, or a missing projection or catalogue.
    """
    if not isinstance(when, datetime) or when.tzinfo is None or when.utcoffset() is None:
        raise InvalidInputError(f"timezone-aware datetime required, got {when!r}")
    if not isinstance(where, GeographicCoordinates):
        raise InvalidInputError(f"observer location required, got {where!r}")
    if projection is None:
        raise InvalidInputError("a projection is required")
    if catalogue is None:
        raise InvalidInputError("a star catalogue is required")

    # -- 1. Conversions --
    ecl_to_equ = EclipticToEquatorialConversion(when)
    equ_to_hor = EquatorialToHorizontalConversion(when, where)

    # -- 2. Solar system bodies --
    days = Epoch.J2010.days_until(when)
    sun = models.sun.at(days, ecl_to_equ)
    moon = models.moon.at(days, ecl_to_equ)
    planets = [m.at(days, ecl_to_equ) for m in models.planets if m is not models.home]

    # -- 3. Horizontal coordinates, transformed once --
    bodies: list[CelestialObject] = [sun, moon, *planets, *catalogue.stars]
    ra = np.fromiter((b.equatorial_pos.ra_deg for b in bodies), dtype=float, count=len(bodies))
    dec = np.fromiter((b.equatorial_pos.dec_deg for b in bodies), dtype=float, count=len(bodies))
    az, alt = equ_to_hor.apply_many(ra, dec)

    # -- 4. Plane positions --
    x, y = projection.apply_many(az, alt)
    positions = np.column_stack([x, y])

    sky = ObservedSky(sun, moon, planets, catalogue, positions, when=when, where=where)
    LOG.debug("Built observed sky at %s for %s: %d objects", when.isoformat(), where, len(sky))
    return sky


__all__ = ["ObservedSky", "build_observed_sky"]
