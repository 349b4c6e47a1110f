#!/usr/bin/env python3
"""Gate: build the sky for Boston 2023-03-15 21:00 EDT from data/, verify the results."""
from datetime import datetime
from zoneinfo import ZoneInfo

import numpy as np

from skyview.canvas import PlaneToCanvas
from skyview.catalog import load_catalogue
from skyview.config import configure_logging, load_config
from skyview.coordinates import GeographicCoordinates, HorizontalCoordinates
from skyview.observed_sky import build_observed_sky
from skyview.projection import StereographicProjection


def main() -> None:
    cfg = load_config()
    configure_logging(cfg.log_level)
    where = GeographicCoordinates(-71.0589, 42.3601)
    when = datetime(2023, 3, 15, 21, 0, tzinfo=ZoneInfo("America/New_York"))

    catalogue = load_catalogue(cfg.stars_path, cfg.asterisms_path if cfg.asterisms_path.exists() else None)
    print(f"Loaded {len(catalogue)} stars, {len(catalogue.asterisms)} asterisms")

    projection = StereographicProjection(HorizontalCoordinates(0.0, 45.0))
    sky = build_observed_sky(when, where, projection, catalogue)
    print(f"Projected {len(sky)} objects ({len(sky.planets)} planets)")
    assert len(sky.planets) == 7, f"Unexpected planet count: {len(sky.planets)}"

    xy = sky.star_positions().reshape(-1, 2)
    finite = np.isfinite(xy).all(axis=1)
    print(f"X range: [{xy[finite, 0].min():.2f}, {xy[finite, 0].max():.2f}]")
    print(f"Y range: [{xy[finite, 1].min():.2f}, {xy[finite, 1].max():.2f}]")

    # Polaris (HIP 11767) should sit near the view center, which looks north at 45°
    for star in sky.stars:
        if star.hipparcos_id == 11767:
            hor = projection.inverse_apply(sky.position_of(star))
            print(f"Polaris: alt={hor.alt_deg:.1f} deg, az={hor.az_deg:.1f} deg")
            assert 35 < hor.alt_deg < 50, f"Polaris alt wrong: {hor.alt_deg}"
            to_canvas = PlaneToCanvas.for_canvas(1800, 1700, 120.0)
            px, py = to_canvas.apply(sky.position_of(star))
            print(f"Polaris on canvas: ({px:.0f}, {py:.0f})")
            assert 500 < px < 1300 and 500 < py < 1200
            picked = sky.object_closest_to(sky.position_of(star), to_canvas.distance_to_plane(cfg.pick_radius_px))
            assert picked is not None
            break

    print("\n=== SNAPSHOT GATE: ALL CHECKS PASSED ===")


if __name__ == "__main__":
    main()
