"""Epochs and simple motion models for the Sun, the Moon and the planets.

The models follow the low-precision Keplerian approach of "Practical
Astronomy with your Calculator or Spreadsheet" (J2010 elements): good to
a fraction of a degree, which is plenty for a sky chart.

Every model exposes ``at(days_since_j2010, ecliptic_to_equatorial)`` and
returns the matching celestial object. ``ecliptic_to_equatorial`` is any
object with an ``apply(EclipticCoordinates) -> EquatorialCoordinates`` method.
"""
from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from typing import NamedTuple, Protocol, Sequence

from skyview.coordinates import EclipticCoordinates, EquatorialCoordinates, normalize_deg
from skyview.errors import InvalidInputError
from skyview.objects import CelestialObject, Moon, Planet, Sun

TAU = 2.0 * math.pi
TROPICAL_YEAR_DAYS = 365.242191


class Epoch(Enum):
    J2000 = datetime(2000, 1, 1, 12, 0, tzinfo=timezone.utc)
    J2010 = datetime(2009, 12, 31, 0, 0, tzinfo=timezone.utc)

    def days_until(self, when: datetime) -> float:
        """Days (fractional) from this epoch to ``when``, which must be timezone-aware."""
        if when.tzinfo is None or when.utcoffset() is None:
            raise InvalidInputError(f"timezone-aware datetime required, got {when!r}")
        return (when - self.value).total_seconds() / 86400.0

    def julian_centuries_until(self, when: datetime) -> float:
        return self.days_until(when) / 36525.0


class EclipticToEquatorial(Protocol):
    def apply(self, ecliptic: EclipticCoordinates) -> EquatorialCoordinates: ...


class CelestialObjectModel(Protocol):
    def at(self, days_since_j2010: float, ecliptic_to_equatorial: EclipticToEquatorial) -> CelestialObject: ...


def _ecliptic(lon_rad: float, lat_rad: float) -> EclipticCoordinates:
    return EclipticCoordinates(normalize_deg(math.degrees(lon_rad)), math.degrees(lat_rad))


class SunModel:
    # ε_g, ϖ_g, e for the apparent solar orbit at J2010
    LON_AT_EPOCH = math.radians(279.557208)
    LON_AT_PERIGEE = math.radians(283.112438)
    ECCENTRICITY = 0.016705
    ANGULAR_SIZE_AT_1AU = 0.533128     # degrees

    def at(self, days_since_j2010: float, ecliptic_to_equatorial: EclipticToEquatorial) -> Sun:
        mean_anomaly = (TAU / TROPICAL_YEAR_DAYS) * days_since_j2010 + self.LON_AT_EPOCH - self.LON_AT_PERIGEE
        true_anomaly = mean_anomaly + 2.0 * self.ECCENTRICITY * math.sin(mean_anomaly)
        ecliptic = _ecliptic(true_anomaly + self.LON_AT_PERIGEE, 0.0)
        e = self.ECCENTRICITY
        angular_size = self.ANGULAR_SIZE_AT_1AU * (1.0 + e * math.cos(true_anomaly)) / (1.0 - e * e)
        return Sun(ecliptic, ecliptic_to_equatorial.apply(ecliptic), angular_size, mean_anomaly)


class MoonModel:
    MEAN_LON = math.radians(91.929336)
    PERIGEE_LON = math.radians(130.143076)
    NODE_LON = math.radians(291.682547)
    INCLINATION = math.radians(5.145396)
    ECCENTRICITY = 0.0549
    ANGULAR_SIZE = 0.5181               # degrees, at the mean distance

    def at(self, days_since_j2010: float, ecliptic_to_equatorial: EclipticToEquatorial) -> Moon:
        d = days_since_j2010
        sun = SUN_MODEL.at(d, ecliptic_to_equatorial)
        sun_lon = math.radians(sun.ecliptic_pos.lon_deg)
        sun_anomaly = sun.mean_anomaly

        # orbital longitude
        mean_lon = math.radians(13.1763966) * d + self.MEAN_LON
        mean_anomaly = mean_lon - math.radians(0.1114041) * d - self.PERIGEE_LON
        evection = math.radians(1.2739) * math.sin(2.0 * (mean_lon - sun_lon) - mean_anomaly)
        annual_eq = math.radians(0.1858) * math.sin(sun_anomaly)
        a3 = math.radians(0.37) * math.sin(sun_anomaly)
        corr_anomaly = mean_anomaly + evection - annual_eq - a3
        center_eq = math.radians(6.2886) * math.sin(corr_anomaly)
        a4 = math.radians(0.214) * math.sin(2.0 * corr_anomaly)
        corr_lon = mean_lon + evection + center_eq - annual_eq + a4
        variation = math.radians(0.6583) * math.sin(2.0 * (corr_lon - sun_lon))
        true_lon = corr_lon + variation

        # ecliptic position
        node = self.NODE_LON - math.radians(0.0529539) * d
        corr_node = node - math.radians(0.16) * math.sin(sun_anomaly)
        lam = math.atan2(math.sin(true_lon - corr_node) * math.cos(self.INCLINATION),
                         math.cos(true_lon - corr_node)) + corr_node
        beta = math.asin(math.sin(true_lon - corr_node) * math.sin(self.INCLINATION))

        phase = (1.0 - math.cos(true_lon - sun_lon)) / 2.0
        e = self.ECCENTRICITY
        distance = (1.0 - e * e) / (1.0 + e * math.cos(corr_anomaly + center_eq))
        equatorial = ecliptic_to_equatorial.apply(_ecliptic(lam, beta))
        return Moon(equatorial, self.ANGULAR_SIZE / distance, phase)


class PlanetModel(Enum):
    # name, period (tropical years), lon at epoch, lon at perihelion (deg),
    # eccentricity, semi-major axis (AU), inclination, lon of node (deg),
    # angular size at 1 AU (arcsec), magnitude at 1 AU
    MERCURY = ("Mercury", 0.24085, 75.5671, 77.612, 0.205627, 0.387098, 7.006952, 48.449, 6.74, -0.42)
    VENUS = ("Venus", 0.615207, 272.30044, 131.54, 0.006812, 0.723329, 3.3947, 76.769, 16.92, -4.40)
    EARTH = ("Earth", 0.999996, 99.556772, 103.2055, 0.016671, 0.999985, 0.0, 0.0, 0.0, 0.0)
    MARS = ("Mars", 1.880765, 109.09646, 336.217, 0.093348, 1.523689, 1.8497, 49.632, 9.36, -1.52)
    JUPITER = ("Jupiter", 11.857911, 337.917132, 14.6633, 0.048907, 5.20278, 1.3035, 100.595, 196.74, -9.40)
    SATURN = ("Saturn", 29.310579, 172.398316, 89.567, 0.053853, 9.51134, 2.4873, 113.752, 165.60, -8.88)
    URANUS = ("Uranus", 84.039492, 271.063148, 172.884833, 0.046321, 19.21814, 0.773059, 73.926961, 65.80, -7.19)
    NEPTUNE = ("Neptune", 165.84539, 326.895127, 23.07, 0.010483, 30.1985, 1.7673, 131.879, 62.20, -6.87)

    def __init__(self, display_name, period, lon_epoch, lon_perihelion, eccentricity,
                 axis, inclination, lon_node, size_arcsec, magnitude) -> None:
        self.display_name = display_name
        self.period = period
        self.lon_epoch = math.radians(lon_epoch)
        self.lon_perihelion = math.radians(lon_perihelion)
        self.eccentricity = eccentricity
        self.axis = axis
        self.inclination = math.radians(inclination)
        self.lon_node = math.radians(lon_node)
        self.size_deg = size_arcsec / 3600.0
        self.magnitude_1au = magnitude

    def _heliocentric(self, days: float) -> tuple[float, float]:
        """Return (true heliocentric longitude, radius) in the orbit plane."""
        e = self.eccentricity
        mean_anomaly = (TAU / TROPICAL_YEAR_DAYS) * days / self.period + self.lon_epoch - self.lon_perihelion
        true_anomaly = mean_anomaly + 2.0 * e * math.sin(mean_anomaly)
        radius = self.axis * (1.0 - e * e) / (1.0 + e * math.cos(true_anomaly))
        return true_anomaly + self.lon_perihelion, radius

    def at(self, days_since_j2010: float, ecliptic_to_equatorial: EclipticToEquatorial) -> Planet:
        if self is PlanetModel.EARTH:
            raise ValueError("the observer's own planet has no geocentric position")
        lon, radius = self._heliocentric(days_since_j2010)
        earth_lon, earth_radius = PlanetModel.EARTH._heliocentric(days_since_j2010)

        # projection onto the ecliptic
        psi = math.asin(math.sin(lon - self.lon_node) * math.sin(self.inclination))
        proj_radius = radius * math.cos(psi)
        proj_lon = math.atan2(math.sin(lon - self.lon_node) * math.cos(self.inclination),
                              math.cos(lon - self.lon_node)) + self.lon_node

        if self.axis < 1.0:
            lam = math.pi + earth_lon + math.atan2(
                proj_radius * math.sin(earth_lon - proj_lon),
                earth_radius - proj_radius * math.cos(earth_lon - proj_lon))
        else:
            lam = proj_lon + math.atan2(
                earth_radius * math.sin(proj_lon - earth_lon),
                proj_radius - earth_radius * math.cos(proj_lon - earth_lon))
        beta = math.atan(proj_radius * math.tan(psi) * math.sin(lam - proj_lon)
                         / (earth_radius * math.sin(proj_lon - earth_lon)))

        distance = math.sqrt(earth_radius ** 2 + radius ** 2
                             - 2.0 * earth_radius * radius * math.cos(lon - earth_lon) * math.cos(psi))
        phase = (1.0 + math.cos(lam - lon)) / 2.0
        magnitude = self.magnitude_1au + 5.0 * math.log10(radius * distance / math.sqrt(max(phase, 1e-12)))
        equatorial = ecliptic_to_equatorial.apply(_ecliptic(lam, beta))
        return Planet(self.display_name, equatorial, self.size_deg / distance, magnitude)


SUN_MODEL = SunModel()
MOON_MODEL = MoonModel()


class EphemerisModels(NamedTuple):
    """The bodies a snapshot tracks, besides the stars.

    ``planets`` is in registration order; ``home`` is skipped when observing.
    """

    sun: CelestialObjectModel
    moon: CelestialObjectModel
    planets: Sequence[CelestialObjectModel]
    home: CelestialObjectModel | None


DEFAULT_MODELS = EphemerisModels(SUN_MODEL, MOON_MODEL, tuple(PlanetModel), PlanetModel.EARTH)


__all__ = [
    "DEFAULT_MODELS",
    "EphemerisModels",
    "Epoch",
    "MOON_MODEL",
    "MoonModel",
    "PlanetModel",
    "SUN_MODEL",
    "SunModel",
]
