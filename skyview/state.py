"""Mutable observation state: simulated date/time, observer location, viewing parameters.

Each field is a reactive :class:`~skyview.reactive.Leaf`; the canvas graph
declares dependencies on the leaves it needs. Setters validate and raise
InvalidInputError; they bump a generation only when the value changes.
"""
from __future__ import annotations

from datetime import date, datetime, time, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from skyview.config import CFG
from skyview.coordinates import (
    GeographicCoordinates,
    HorizontalCoordinates,
    is_valid_lat_deg,
    is_valid_lon_deg,
)
from skyview.errors import InvalidInputError
from skyview.reactive import Derived, Leaf


def _as_zone(zone: tzinfo | str) -> tzinfo:
    if isinstance(zone, tzinfo):
        return zone
    try:
        return ZoneInfo(zone)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as exc:
        raise InvalidInputError(f"Unknown timezone: {zone}") from exc


class DateTimeBean:
    """Simulated instant, held as local date, local time and zone."""

    def __init__(self, when: datetime | None = None) -> None:
        if when is None:
            when = datetime.now().astimezone()
        self._check_aware(when)
        self.date_leaf: Leaf[date] = Leaf(when.date(), name="date")
        self.time_leaf: Leaf[time] = Leaf(when.timetz().replace(tzinfo=None), name="time")
        self.zone_leaf: Leaf[tzinfo] = Leaf(when.tzinfo, name="zone")

    @staticmethod
    def _check_aware(when: datetime) -> None:
        if not isinstance(when, datetime) or when.tzinfo is None or when.utcoffset() is None:
            raise InvalidInputError(f"timezone-aware datetime required, got {when!r}")

    @property
    def date(self) -> date:
        return self.date_leaf.get()

    @date.setter
    def date(self, value: date) -> None:
        self.date_leaf.set(value)

    @property
    def time(self) -> time:
        return self.time_leaf.get()

    @time.setter
    def time(self, value: time) -> None:
        self.time_leaf.set(value.replace(tzinfo=None))

    @property
    def zone(self) -> tzinfo:
        return self.zone_leaf.get()

    @zone.setter
    def zone(self, value: tzinfo | str) -> None:
        self.zone_leaf.set(_as_zone(value))

    @property
    def zoned_date_time(self) -> datetime:
        return datetime.combine(self.date, self.time, tzinfo=self.zone)

    @zoned_date_time.setter
    def zoned_date_time(self, when: datetime) -> None:
        self._check_aware(when)
        self.date_leaf.set(when.date())
        self.time_leaf.set(when.timetz().replace(tzinfo=None))
        self.zone_leaf.set(when.tzinfo)

    @staticmethod
    def combine(date_value: date, time_value: time, zone: tzinfo) -> datetime:
        return datetime.combine(date_value, time_value, tzinfo=zone)


class ObserverLocationBean:
    def __init__(self, lon_deg: float = 6.57, lat_deg: float = 46.52) -> None:
        self.lon_leaf: Leaf[float] = Leaf(self._check_lon(lon_deg), name="lon_deg")
        self.lat_leaf: Leaf[float] = Leaf(self._check_lat(lat_deg), name="lat_deg")
        self.coordinates_node: Derived[GeographicCoordinates] = Derived(
            GeographicCoordinates, self.lon_leaf, self.lat_leaf, name="observer_coordinates"
        )

    @staticmethod
    def _check_lon(lon: float) -> float:
        lon = float(lon)
        if not is_valid_lon_deg(lon):
            raise InvalidInputError("Longitude must be between -180 and 180.")
        return lon

    @staticmethod
    def _check_lat(lat: float) -> float:
        lat = float(lat)
        if not is_valid_lat_deg(lat):
            raise InvalidInputError("Latitude must be between -90 and 90.")
        return lat

    @property
    def lon_deg(self) -> float:
        return self.lon_leaf.get()

    @lon_deg.setter
    def lon_deg(self, value: float) -> None:
        self.lon_leaf.set(self._check_lon(value))

    @property
    def lat_deg(self) -> float:
        return self.lat_leaf.get()

    @lat_deg.setter
    def lat_deg(self, value: float) -> None:
        self.lat_leaf.set(self._check_lat(value))

    @property
    def coordinates(self) -> GeographicCoordinates:
        return self.coordinates_node.get()

    @coordinates.setter
    def coordinates(self, value: GeographicCoordinates) -> None:
        self.lon_deg = value.lon_deg
        self.lat_deg = value.lat_deg


class ViewingParametersBean:
    def __init__(self, center: HorizontalCoordinates | None = None, field_of_view_deg: float = CFG.default_fov_deg) -> None:
        if center is None:
            center = HorizontalCoordinates(CFG.default_center_az_deg, CFG.default_center_alt_deg)
        self.center_leaf: Leaf[HorizontalCoordinates] = Leaf(self._check_center(center), name="center")
        self.fov_leaf: Leaf[float] = Leaf(self._check_fov(field_of_view_deg), name="field_of_view_deg")

    @staticmethod
    def _check_center(center: HorizontalCoordinates) -> HorizontalCoordinates:
        if not isinstance(center, HorizontalCoordinates):
            raise InvalidInputError(f"view center must be horizontal coordinates, got {center!r}")
        return center

    @staticmethod
    def _check_fov(fov: float) -> float:
        fov = float(fov)
        if not fov >= 0:
            raise InvalidInputError(f"field of view must be non-negative, got {fov}")
        return fov

    @property
    def center(self) -> HorizontalCoordinates:
        return self.center_leaf.get()

    @center.setter
    def center(self, value: HorizontalCoordinates) -> None:
        self.center_leaf.set(self._check_center(value))

    @property
    def field_of_view_deg(self) -> float:
        return self.fov_leaf.get()

    @field_of_view_deg.setter
    def field_of_view_deg(self, value: float) -> None:
        self.fov_leaf.set(self._check_fov(value))


__all__ = ["DateTimeBean", "ObserverLocationBean", "ViewingParametersBean"]
