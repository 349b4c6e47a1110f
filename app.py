"""Flask JSON surface over the sky canvas manager and the time animator.

Routes:
    GET  /                    -- Current observation state
    GET  /sky                 -- Advance the clock one frame, return the projected sky (pixels)
    GET  /cities              -- Observer presets
    POST /observer            -- Set observer (lat/lon or city)
    POST /time                -- Set simulated date, time and timezone
    POST /view                -- Set view center / field of view, or pan / zoom
    POST /canvas              -- Set canvas size in pixels
    POST /pointer             -- Set pointer position, return object under it and its az/alt
    POST /clock/start         -- Start accelerated time
    POST /clock/stop          -- Stop accelerated time
    POST /clock/accelerator   -- Select a named time accelerator
"""
from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache, wraps
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flask import Flask, Response, jsonify, request

from skyview.animation import NamedTimeAccelerator, TimeAnimator
from skyview.canvas import SkyCanvasManager
from skyview.catalog import load_catalogue
from skyview.cities import City, find_city, load_cities
from skyview.config import SkyViewCfg, configure_logging, load_config
from skyview.coordinates import HorizontalCoordinates
from skyview.errors import ConfigurationError, InvalidInputError
from skyview.labels import decimal_to_dms, describe, format_datetime, format_field_of_view, format_horizontal
from skyview.objects import object_kind
from skyview.state import DateTimeBean, ObserverLocationBean, ViewingParametersBean

LOG = logging.getLogger(__name__)

app = Flask(__name__)

TIMEZONES = [
    "America/New_York", "America/Chicago", "America/Denver",
    "America/Los_Angeles", "America/Anchorage", "Pacific/Honolulu",
    "Europe/London", "Europe/Paris", "Europe/Berlin", "Europe/Zurich",
    "Asia/Tokyo", "Asia/Shanghai", "Australia/Sydney", "UTC",
]


@dataclass
class SkySession:
    cfg: SkyViewCfg
    date_time: DateTimeBean
    observer: ObserverLocationBean
    view: ViewingParametersBean
    manager: SkyCanvasManager
    animator: TimeAnimator
    cities: list[City]
    lock: threading.Lock = field(default_factory=threading.Lock)


@lru_cache(maxsize=1)
def get_session() -> SkySession:
    """Build the process-wide session once. Missing catalogue files are fatal."""
    cfg = load_config()
    configure_logging(cfg.log_level)
    catalogue = load_catalogue(cfg.stars_path, cfg.asterisms_path)
    cities: list[City] = []
    if cfg.cities_path.exists():
        with open(cfg.cities_path, newline="", encoding="utf-8") as f:
            cities = load_cities(f)

    date_time = DateTimeBean()
    observer = ObserverLocationBean()
    view = ViewingParametersBean()
    manager = SkyCanvasManager(catalogue, date_time, observer, view, cfg=cfg)
    animator = TimeAnimator(date_time, NamedTimeAccelerator.from_name(cfg.default_accelerator).accelerator)
    return SkySession(cfg, date_time, observer, view, manager, animator, cities)


def locked(view):
    """Serve the wrapped route with the session lock held.

    The dev server is threaded; the beans, the recomputation graph and the
    animator are shared by every request.
    """
    @wraps(view)
    def wrapper(*args, **kwargs):
        with get_session().lock:
            return view(*args, **kwargs)

    return wrapper


def _json_number(value: float) -> float | None:
    """Round to 0.1 px; NaN and infinities (a body at the view antipode) become null."""
    value = float(value)
    return round(value, 1) if math.isfinite(value) else None


def _float_field(name: str, label: str) -> float:
    try:
        return float(request.form.get(name, ""))
    except ValueError:
        raise InvalidInputError(f"Invalid {label}. Enter a number.") from None


def _parse_time_form() -> datetime | str:
    """Parse date + time + tz. Returns aware datetime on success, error string on failure."""
    date_str = request.form.get("date", "")
    time_str = request.form.get("time", "")
    if not date_str or not time_str:
        return "Date and time are required."
    try:
        dt = datetime.strptime(f"{date_str} {time_str}", "%Y-%m-%d %H:%M")
    except ValueError:
        return "Invalid date or time format."

    tz_name = request.form.get("tz", "UTC")
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, KeyError, ValueError):
        return f"Unknown timezone: {tz_name}"
    return dt.replace(tzinfo=tz)


@app.errorhandler(ValueError)
def bad_input(exc: Exception) -> Response:
    return Response(str(exc), status=400, mimetype="text/plain")


@app.errorhandler(ConfigurationError)
def bad_configuration(exc: ConfigurationError) -> Response:
    LOG.warning("Canvas configuration rejected: %s", exc)
    return Response(str(exc), status=409, mimetype="text/plain")


def _state(session: SkySession) -> dict:
    when = session.date_time.zoned_date_time
    center = session.view.center
    lat, lon = session.observer.lat_deg, session.observer.lon_deg
    return {
        "time": when.isoformat(),
        "time_label": format_datetime(when),
        "observer": {"lon": lon, "lat": lat, "label": f"{decimal_to_dms(lat, True)}, {decimal_to_dms(lon, False)}"},
        "view": {"az": center.az_deg, "alt": center.alt_deg, "fov": session.view.field_of_view_deg},
        "fov_label": format_field_of_view(session.view.field_of_view_deg),
        "canvas": list(session.manager.canvas_size),
        "clock": {"running": session.animator.running, "accelerator": repr(session.animator.accelerator)},
        "timezones": TIMEZONES,
        "accelerators": [str(a) for a in NamedTimeAccelerator],
    }


@app.route("/")
@locked
def index() -> Response:
    """Return the current observation state."""
    return jsonify(_state(get_session()))


@app.route("/sky")
@locked
def sky() -> Response:
    """Tick the animator (one frame), then return Sun, Moon, planets and stars in canvas pixels."""
    session = get_session()
    session.animator.tick(time.monotonic_ns())
    manager = session.manager
    observed = manager.observed_sky
    to_canvas = manager.plane_to_canvas

    def body(obj, plane_pos) -> dict:
        x, y = to_canvas.apply(plane_pos)
        return {"name": obj.name, "kind": object_kind(obj), "info": describe(obj),
                "x": _json_number(x), "y": _json_number(y), "magnitude": obj.magnitude}

    planets = observed.planet_positions().reshape(-1, 2)
    return jsonify({
        "time": observed.when.isoformat(),
        "sun": body(observed.sun, observed.sun_position),
        "moon": body(observed.moon, observed.moon_position),
        "planets": [body(p, pos) for p, pos in zip(observed.planets, planets)],
        "stars": [_json_number(v) for v in to_canvas.apply_many(observed.star_positions())],
        "asterisms": [observed.asterism_indices(a) for a in sorted(observed.asterisms, key=lambda a: a.name)],
    })


@app.route("/cities")
@locked
def cities() -> Response:
    """List observer presets."""
    return jsonify([{"name": str(c), "lon": c.coordinates.lon_deg, "lat": c.coordinates.lat_deg}
                    for c in get_session().cities])


@app.route("/observer", methods=["POST"])
@locked
def set_observer() -> Response:
    """Set the observer from 'city' or from 'lat' + 'lon'."""
    session = get_session()
    city_name = request.form.get("city", "").strip()
    if city_name:
        city = find_city(session.cities, city_name)
        if city is None:
            return Response(f"Unknown city: {city_name}", status=404, mimetype="text/plain")
        session.observer.coordinates = city.coordinates
    else:
        lat = _float_field("lat", "latitude")
        lon = _float_field("lon", "longitude")
        session.observer.lat_deg = lat
        session.observer.lon_deg = lon
    return jsonify(_state(session))


@app.route("/time", methods=["POST"])
@locked
def set_time() -> Response:
    """Set simulated time; 'now' resets to the current wall-clock time. Refused while running."""
    session = get_session()
    if session.animator.running:
        return Response("Stop the clock before changing the time.", status=409, mimetype="text/plain")
    if request.form.get("now"):
        session.date_time.zoned_date_time = datetime.now().astimezone()
        return jsonify(_state(session))
    result = _parse_time_form()
    if isinstance(result, str):
        return Response(result, status=400, mimetype="text/plain")
    session.date_time.zoned_date_time = result
    return jsonify(_state(session))


@app.route("/view", methods=["POST"])
@locked
def set_view() -> Response:
    """Absolute 'az'/'alt'/'fov', or relative 'd_az'/'d_alt'/'d_fov'; 'reset_fov' restores the default."""
    session = get_session()
    form = request.form
    if "az" in form or "alt" in form:
        center = session.view.center
        az = _float_field("az", "azimuth") if "az" in form else center.az_deg
        alt = _float_field("alt", "altitude") if "alt" in form else center.alt_deg
        session.view.center = HorizontalCoordinates(az, alt)
    if "fov" in form:
        session.view.field_of_view_deg = _float_field("fov", "field of view")
    if "d_az" in form or "d_alt" in form:
        session.manager.pan(float(form.get("d_az", 0)), float(form.get("d_alt", 0)))
    if "d_fov" in form:
        session.manager.zoom(float(form["d_fov"]))
    if form.get("reset_fov"):
        session.manager.reset_field_of_view()
    return jsonify(_state(session))


@app.route("/canvas", methods=["POST"])
@locked
def set_canvas() -> Response:
    """Resize the canvas (pixels)."""
    session = get_session()
    session.manager.set_canvas_size(_float_field("width", "width"), _float_field("height", "height"))
    # surface a degenerate size now rather than on the next read
    session.manager.plane_to_canvas_node.refresh()
    return jsonify(_state(session))


@app.route("/pointer", methods=["POST"])
@locked
def set_pointer() -> Response:
    """Move the pointer; return the object under it and its horizontal position."""
    session = get_session()
    manager = session.manager
    if request.form.get("clear"):
        manager.mouse_position = None
    else:
        manager.mouse_position = (_float_field("x", "x"), _float_field("y", "y"))
    obj = manager.object_under_mouse
    return jsonify({
        "object": None if obj is None else {"name": obj.name, "kind": object_kind(obj), "info": describe(obj)},
        "az": manager.mouse_az_deg,
        "alt": manager.mouse_alt_deg,
        "label": format_horizontal(manager.mouse_horizontal_position),
    })


@app.route("/clock/start", methods=["POST"])
@locked
def clock_start() -> Response:
    session = get_session()
    session.animator.start()
    return jsonify(_state(session))


@app.route("/clock/stop", methods=["POST"])
@locked
def clock_stop() -> Response:
    session = get_session()
    session.animator.stop()
    return jsonify(_state(session))


@app.route("/clock/accelerator", methods=["POST"])
@locked
def clock_accelerator() -> Response:
    """Select a named accelerator ('1×', 'x300', 'day', 'sidereal day', ...)."""
    session = get_session()
    session.animator.accelerator = NamedTimeAccelerator.from_name(request.form.get("name", "")).accelerator
    return jsonify(_state(session))


if __name__ == "__main__":
    app.run(debug=True, port=5000)
