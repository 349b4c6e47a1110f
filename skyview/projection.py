"""Coordinate conversions and stereographic projection.

Pipeline: Ecliptic -> Equatorial (RA/Dec) -> Horizontal (az/alt) -> Stereographic (x, y)
"""
from __future__ import annotations

import math
from datetime import datetime

import numpy as np
from numpy.typing import NDArray
from astropy.coordinates import SkyCoord, EarthLocation, AltAz
from astropy.time import Time
import astropy.units as u

from skyview.config import configure_astropy
from skyview.coordinates import (
    EclipticCoordinates,
    EquatorialCoordinates,
    GeographicCoordinates,
    HorizontalCoordinates,
    PlanePoint,
    normalize_deg,
)
from skyview.ephemeris import Epoch

configure_astropy()

# 23° 26' 21.45"
_OBLIQUITY_J2000_DEG = 23.0 + 26.0 / 60.0 + 21.45 / 3600.0
_ARCSEC = 1.0 / 3600.0


def build_altaz_frame(when: datetime, where: GeographicCoordinates) -> AltAz:
    """Build AltAz reference frame for a specific time and location.

    Args:
        when: timezone-aware datetime of the observation
        where: observer longitude/latitude
    """
    obs_time = Time(when)
    location = EarthLocation(lat=where.lat_deg * u.deg, lon=where.lon_deg * u.deg)
    return AltAz(obstime=obs_time, location=location)


def transform_radec_to_altaz(
    ra: NDArray[np.float64],
    dec: NDArray[np.float64],
    frame: AltAz,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Bulk-transform RA/Dec arrays to altitude/azimuth arrays (degrees).

    NOTE: This is the slow step (~2-5 sec for 9000 stars). Call ONCE with
    all objects, not per-object.
    """
    # Catalogue stars are J2000, but Sun, Moon and planet models give
    # equatorial coordinates of date. Reading those as ICRS precesses them a
    # second time (about 0.35° by 2026); a chart this coarse accepts that.
    coords = SkyCoord(ra=ra * u.deg, dec=dec * u.deg, frame="icrs")
    altaz = coords.transform_to(frame)
    return altaz.alt.deg, altaz.az.deg


class EquatorialToHorizontalConversion:
    """Equatorial -> horizontal conversion bound to one instant and place."""

    def __init__(self, when: datetime, where: GeographicCoordinates) -> None:
        self.when = when
        self.where = where
        self._frame = build_altaz_frame(when, where)

    def apply_many(
        self,
        ra_deg: NDArray[np.float64],
        dec_deg: NDArray[np.float64],
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Return (az, alt) arrays in degrees, az normalized to [0, 360)."""
        ra_deg = np.asarray(ra_deg, dtype=float)
        dec_deg = np.asarray(dec_deg, dtype=float)
        if ra_deg.size == 0:
            return np.empty(0), np.empty(0)
        alt, az = transform_radec_to_altaz(ra_deg, dec_deg, self._frame)
        return np.mod(np.asarray(az, dtype=float), 360.0), np.asarray(alt, dtype=float)

    def apply(self, equatorial: EquatorialCoordinates) -> HorizontalCoordinates:
        az, alt = self.apply_many(np.array([equatorial.ra_deg]), np.array([equatorial.dec_deg]))
        return HorizontalCoordinates(normalize_deg(float(az[0])), float(np.clip(alt[0], -90.0, 90.0)))


class EclipticToEquatorialConversion:
    """Ecliptic -> equatorial rotation by the mean obliquity at ``when``."""

    def __init__(self, when: datetime) -> None:
        t = Epoch.J2000.julian_centuries_until(when)
        obliquity = (
            _OBLIQUITY_J2000_DEG
            - 46.815 * _ARCSEC * t
            - 0.0006 * _ARCSEC * t * t
            + 0.00181 * _ARCSEC * t * t * t
        )
        self.obliquity_deg = obliquity
        eps = math.radians(obliquity)
        self._cos_eps = math.cos(eps)
        self._sin_eps = math.sin(eps)

    def apply(self, ecliptic: EclipticCoordinates) -> EquatorialCoordinates:
        lam = math.radians(ecliptic.lon_deg)
        beta = math.radians(ecliptic.lat_deg)
        ra = math.atan2(
            math.sin(lam) * self._cos_eps - math.tan(beta) * self._sin_eps,
            math.cos(lam),
        )
        sin_dec = math.sin(beta) * self._cos_eps + math.cos(beta) * self._sin_eps * math.sin(lam)
        dec = math.asin(max(-1.0, min(1.0, sin_dec)))
        return EquatorialCoordinates(normalize_deg(math.degrees(ra)), math.degrees(dec))


class StereographicProjection:
    """Stereographic projection of the celestial sphere, centered on ``center``.

    Math (λ = az, φ = alt, c = center):
        d = 1 / (1 + sin φ sin φc + cos φ cos φc cos(λ - λc))
        x = d cos φ sin(λ - λc)
        y = d (sin φ cos φc - cos φ sin φc cos(λ - λc))

    The center maps to (0, 0); the antipode of the center is sent to infinity.
    """

    def __init__(self, center: HorizontalCoordinates) -> None:
        self.center = center
        self._lam_c = math.radians(center.az_deg)
        phi_c = math.radians(center.alt_deg)
        self._cos_phi_c = math.cos(phi_c)
        self._sin_phi_c = math.sin(phi_c)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, StereographicProjection) and other.center == self.center

    def __hash__(self) -> int:
        return hash(self.center)

    def __repr__(self) -> str:
        return f"StereographicProjection(center={self.center})"

    def apply_many(
        self,
        az_deg: NDArray[np.float64],
        alt_deg: NDArray[np.float64],
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        lam = np.radians(np.asarray(az_deg, dtype=float))
        phi = np.radians(np.asarray(alt_deg, dtype=float))
        cos_phi, sin_phi = np.cos(phi), np.sin(phi)
        cos_dlam = np.cos(lam - self._lam_c)
        with np.errstate(divide="ignore", invalid="ignore"):
            d = 1.0 / (1.0 + sin_phi * self._sin_phi_c + cos_phi * self._cos_phi_c * cos_dlam)
        x = d * cos_phi * np.sin(lam - self._lam_c)
        y = d * (sin_phi * self._cos_phi_c - cos_phi * self._sin_phi_c * cos_dlam)
        return x, y

    def apply(self, horizontal: HorizontalCoordinates) -> PlanePoint:
        x, y = self.apply_many(np.array([horizontal.az_deg]), np.array([horizontal.alt_deg]))
        return PlanePoint(float(x[0]), float(y[0]))

    def inverse_apply(self, point: PlanePoint) -> HorizontalCoordinates:
        """Horizontal coordinates of the sphere point projected onto ``point``."""
        x, y = point
        rho_sq = x * x + y * y
        if rho_sq == 0.0:
            return self.center
        rho = math.sqrt(rho_sq)
        sin_c = 2.0 * rho / (rho_sq + 1.0)
        cos_c = (1.0 - rho_sq) / (rho_sq + 1.0)
        lam = math.atan2(
            x * sin_c,
            rho * self._cos_phi_c * cos_c - y * self._sin_phi_c * sin_c,
        ) + self._lam_c
        sin_phi = cos_c * self._sin_phi_c + y * sin_c * self._cos_phi_c / rho
        phi = math.asin(max(-1.0, min(1.0, sin_phi)))
        return HorizontalCoordinates(normalize_deg(math.degrees(lam)), math.degrees(phi))

    @staticmethod
    def apply_to_angle(angle_deg: float) -> float:
        """Plane diameter of a circle of angular diameter ``angle_deg`` at the center."""
        return 2.0 * math.tan(math.radians(angle_deg) / 4.0)


__all__ = [
    "EclipticToEquatorialConversion",
    "EquatorialToHorizontalConversion",
    "StereographicProjection",
    "build_altaz_frame",
    "transform_radec_to_altaz",
]
