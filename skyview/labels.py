"""Human-readable labels for objects, coordinates and instants."""
from __future__ import annotations

from datetime import datetime

from skyview.coordinates import HorizontalCoordinates
from skyview.objects import CelestialObject, Moon, Planet, Star, Sun


def describe(obj: CelestialObject) -> str:
    """Short info line: the name, plus the phase for the Moon."""
    match obj:
        case Moon(phase=phase):
            return f"{obj.name} ({phase * 100:.1f}%)"
        case Star(hipparcos_id=hip) if hip:
            return f"{obj.name} (HIP {hip})"
        case Sun() | Planet() | Star():
            return obj.name
        case _:
            raise TypeError(f"not a celestial object: {obj!r}")


def decimal_to_dms(value: float, is_lat: bool) -> str:
    """Decimal degrees -> DMS string like '42° 20' 25" N'.

    Args:
        value: Decimal degrees (positive or negative).
        is_lat: True for N/S, False for E/W.
    """
    direction = ("N" if value >= 0 else "S") if is_lat else ("E" if value >= 0 else "W")
    value = abs(value)
    d = int(value)
    m = int((value - d) * 60)
    s = int(((value - d) * 60 - m) * 60)
    return f'{d}° {m}\' {s}" {direction}'


def format_datetime(dt: datetime) -> str:
    """Format an aware datetime: 'March 15, 2023, 09:00 PM EDT'."""
    return dt.strftime("%B %d, %Y, %I:%M %p %Z").strip()


def format_horizontal(position: HorizontalCoordinates | None) -> str:
    if position is None:
        return ""
    return f"Azimuth: {position.az_deg:.2f}°, Altitude: {position.alt_deg:.2f}°"


def format_field_of_view(fov_deg: float) -> str:
    return f"Field of view: {fov_deg:.1f}°"


__all__ = [
    "decimal_to_dms",
    "describe",
    "format_datetime",
    "format_field_of_view",
    "format_horizontal",
]
