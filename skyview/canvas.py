"""Canvas-side recomputation graph.

Leaves (owned by the beans or by the manager):
    date, time, zone, observer lon/lat, view center, field of view,
    canvas width, canvas height, mouse position (pixels)

Derived nodes:
    projection            <- view center
    observed_sky          <- date, time, zone, observer coordinates, projection
    plane_to_canvas       <- canvas width, canvas height, field of view
    mouse_plane_position  <- plane_to_canvas, mouse position
    object_under_mouse    <- observed_sky, mouse_plane_position, plane_to_canvas
    mouse_horizontal      <- projection, mouse_plane_position
    mouse_az_deg/alt_deg  <- mouse_horizontal
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, time, tzinfo

import numpy as np
from numpy.typing import NDArray

from skyview.catalog import StarCatalogue
from skyview.config import CFG, SkyViewCfg
from skyview.coordinates import (
    GeographicCoordinates,
    HorizontalCoordinates,
    PlanePoint,
    normalize_deg,
)
from skyview.errors import ConfigurationError
from skyview.objects import CelestialObject
from skyview.observed_sky import ObservedSky, build_observed_sky
from skyview.projection import StereographicProjection
from skyview.reactive import Derived, Leaf
from skyview.state import DateTimeBean, ObserverLocationBean, ViewingParametersBean

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlaneToCanvas:
    """Affine map from projection-plane units to canvas pixels.

    x_px = cx + scale * x,  y_px = cy - scale * y   (plane y points up, canvas y down)
    """

    scale: float
    cx: float
    cy: float

    @classmethod
    def for_canvas(cls, width: float, height: float, field_of_view_deg: float) -> "PlaneToCanvas":
        """The field of view spans the canvas width.

        Raises ConfigurationError when the result would not be invertible.
        """
        if not (width > 0 and height > 0):
            raise ConfigurationError(f"canvas size must be positive, got {width}x{height}")
        if not 0.0 < field_of_view_deg < 360.0:
            raise ConfigurationError(f"field of view must be in (0, 360) degrees, got {field_of_view_deg}")
        plane_width = StereographicProjection.apply_to_angle(field_of_view_deg)
        scale = width / plane_width
        if not math.isfinite(scale) or scale <= 0:
            raise ConfigurationError(f"degenerate canvas scale {scale}")
        return cls(scale, width / 2.0, height / 2.0)

    def apply(self, point: PlanePoint) -> PlanePoint:
        return PlanePoint(self.cx + self.scale * point[0], self.cy - self.scale * point[1])

    def apply_many(self, xy: NDArray[np.float64]) -> NDArray[np.float64]:
        """Transform an (N, 2) array or a flat x, y, x, y, ... array."""
        pts = np.asarray(xy, dtype=float)
        flat = pts.ndim == 1
        pts = pts.reshape(-1, 2)
        out = np.column_stack([self.cx + self.scale * pts[:, 0], self.cy - self.scale * pts[:, 1]])
        return out.reshape(-1) if flat else out

    def inverse_apply(self, pixel: PlanePoint) -> PlanePoint:
        return PlanePoint((pixel[0] - self.cx) / self.scale, (self.cy - pixel[1]) / self.scale)

    def distance_to_plane(self, pixels: float) -> float:
        return pixels / self.scale


class SkyCanvasManager:
    """Ties the observation beans to the projection, the snapshot and pointer queries.

    Everything is lazy: mutate any number of inputs, then read what you need.
    """

    def __init__(
        self,
        catalogue: StarCatalogue,
        date_time: DateTimeBean,
        observer_location: ObserverLocationBean,
        viewing_parameters: ViewingParametersBean,
        *,
        canvas_size: tuple[float, float] = (800.0, 600.0),
        cfg: SkyViewCfg = CFG,
    ) -> None:
        self.catalogue = catalogue
        self.date_time = date_time
        self.observer_location = observer_location
        self.viewing_parameters = viewing_parameters
        self.cfg = cfg

        self.canvas_width_leaf: Leaf[float] = Leaf(float(canvas_size[0]), name="canvas_width")
        self.canvas_height_leaf: Leaf[float] = Leaf(float(canvas_size[1]), name="canvas_height")
        self.mouse_position_leaf: Leaf[PlanePoint | None] = Leaf(None, name="mouse_position")

        self.projection_node: Derived[StereographicProjection] = Derived(
            StereographicProjection,
            viewing_parameters.center_leaf,
            name="projection",
        )
        self.observed_sky_node: Derived[ObservedSky] = Derived(
            self._build_sky,
            date_time.date_leaf,
            date_time.time_leaf,
            date_time.zone_leaf,
            observer_location.coordinates_node,
            self.projection_node,
            name="observed_sky",
        )
        self.plane_to_canvas_node: Derived[PlaneToCanvas] = Derived(
            PlaneToCanvas.for_canvas,
            self.canvas_width_leaf,
            self.canvas_height_leaf,
            viewing_parameters.fov_leaf,
            name="plane_to_canvas",
        )
        self.mouse_plane_position_node: Derived[PlanePoint | None] = Derived(
            _mouse_plane_position,
            self.plane_to_canvas_node,
            self.mouse_position_leaf,
            name="mouse_plane_position",
        )
        self.object_under_mouse_node: Derived[CelestialObject | None] = Derived(
            self._object_under_mouse,
            self.observed_sky_node,
            self.mouse_plane_position_node,
            self.plane_to_canvas_node,
            name="object_under_mouse",
        )
        self.mouse_horizontal_node: Derived[HorizontalCoordinates | None] = Derived(
            _mouse_horizontal,
            self.projection_node,
            self.mouse_plane_position_node,
            name="mouse_horizontal_position",
        )
        self.mouse_az_deg_node: Derived[float | None] = Derived(
            lambda hor: None if hor is None else hor.az_deg,
            self.mouse_horizontal_node,
            name="mouse_az_deg",
        )
        self.mouse_alt_deg_node: Derived[float | None] = Derived(
            lambda hor: None if hor is None else hor.alt_deg,
            self.mouse_horizontal_node,
            name="mouse_alt_deg",
        )

    # -- Node functions --

    def _build_sky(
        self,
        date_value: date,
        time_value: time,
        zone: tzinfo,
        where: GeographicCoordinates,
        projection: StereographicProjection,
    ) -> ObservedSky:
        when = DateTimeBean.combine(date_value, time_value, zone)
        return build_observed_sky(when, where, projection, self.catalogue)

    def _object_under_mouse(
        self,
        sky: ObservedSky,
        plane_point: PlanePoint | None,
        plane_to_canvas: PlaneToCanvas,
    ) -> CelestialObject | None:
        if plane_point is None:
            return None
        radius = plane_to_canvas.distance_to_plane(self.cfg.pick_radius_px)
        return sky.object_closest_to(plane_point, radius)

    # -- Canvas and pointer inputs --

    @property
    def canvas_size(self) -> tuple[float, float]:
        return self.canvas_width_leaf.get(), self.canvas_height_leaf.get()

    def set_canvas_size(self, width: float, height: float) -> None:
        self.canvas_width_leaf.set(float(width))
        self.canvas_height_leaf.set(float(height))

    @property
    def mouse_position(self) -> PlanePoint | None:
        return self.mouse_position_leaf.get()

    @mouse_position.setter
    def mouse_position(self, pixel: tuple[float, float] | None) -> None:
        self.mouse_position_leaf.set(None if pixel is None else PlanePoint(float(pixel[0]), float(pixel[1])))

    # -- View controls --

    def pan(self, d_az_deg: float = 0.0, d_alt_deg: float = 0.0) -> HorizontalCoordinates:
        """Move the view center; azimuth wraps, altitude is clamped."""
        center = self.viewing_parameters.center
        alt = min(max(center.alt_deg + d_alt_deg, self.cfg.min_center_alt_deg), self.cfg.max_center_alt_deg)
        new_center = HorizontalCoordinates(normalize_deg(center.az_deg + d_az_deg), alt)
        self.viewing_parameters.center = new_center
        return new_center

    def zoom(self, d_fov_deg: float) -> float:
        """Change the field of view, clamped to the configured limits."""
        fov = self.viewing_parameters.field_of_view_deg + d_fov_deg
        fov = min(max(fov, self.cfg.min_fov_deg), self.cfg.max_fov_deg)
        self.viewing_parameters.field_of_view_deg = fov
        return fov

    def reset_field_of_view(self) -> None:
        self.viewing_parameters.field_of_view_deg = self.cfg.default_fov_deg

    # -- Read accessors --

    @property
    def projection(self) -> StereographicProjection:
        return self.projection_node.get()

    @property
    def observed_sky(self) -> ObservedSky:
        return self.observed_sky_node.get()

    @property
    def plane_to_canvas(self) -> PlaneToCanvas:
        return self.plane_to_canvas_node.get()

    @property
    def mouse_plane_position(self) -> PlanePoint | None:
        return self.mouse_plane_position_node.get()

    @property
    def object_under_mouse(self) -> CelestialObject | None:
        return self.object_under_mouse_node.get()

    @property
    def mouse_horizontal_position(self) -> HorizontalCoordinates | None:
        return self.mouse_horizontal_node.get()

    @property
    def mouse_az_deg(self) -> float | None:
        return self.mouse_az_deg_node.get()

    @property
    def mouse_alt_deg(self) -> float | None:
        return self.mouse_alt_deg_node.get()


def _mouse_plane_position(plane_to_canvas: PlaneToCanvas, pixel: PlanePoint | None) -> PlanePoint | None:
    return None if pixel is None else plane_to_canvas.inverse_apply(pixel)


def _mouse_horizontal(
    projection: StereographicProjection,
    plane_point: PlanePoint | None,
) -> HorizontalCoordinates | None:
    return None if plane_point is None else projection.inverse_apply(plane_point)


__all__ = ["PlaneToCanvas", "SkyCanvasManager"]
