"""Configuration, logging and astropy setup."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping

from astropy.utils import iers

LOG = logging.getLogger(__name__)

_DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@dataclass(frozen=True)
class SkyViewCfg:
    data_dir: Path = _DEFAULT_DATA_DIR
    stars_file: str = "hygdata_v3.csv"
    asterisms_file: str = "asterisms.txt"
    cities_file: str = "worldcities.csv"
    # Picking radius on the canvas, converted to plane units by the canvas scale.
    pick_radius_px: float = 10.0
    default_center_az_deg: float = 180.0
    default_center_alt_deg: float = 15.0
    default_fov_deg: float = 100.0
    min_fov_deg: float = 30.0
    max_fov_deg: float = 150.0
    min_center_alt_deg: float = 5.0
    max_center_alt_deg: float = 90.0
    default_accelerator: str = "x300"
    log_level: str = "INFO"

    @property
    def stars_path(self) -> Path:
        return self.data_dir / self.stars_file

    @property
    def asterisms_path(self) -> Path:
        return self.data_dir / self.asterisms_file

    @property
    def cities_path(self) -> Path:
        return self.data_dir / self.cities_file


CFG = SkyViewCfg()


def load_config(environ: Mapping[str, str] | None = None) -> SkyViewCfg:
    """Return ``CFG`` with overrides from ``SKYVIEW_*`` environment variables.

    Recognised: SKYVIEW_DATA_DIR, SKYVIEW_LOG_LEVEL, SKYVIEW_PICK_RADIUS.
    Raises ValueError if SKYVIEW_PICK_RADIUS is not a positive number.
    """
    env = os.environ if environ is None else environ
    overrides: dict[str, object] = {}

    data_dir = env.get("SKYVIEW_DATA_DIR", "").strip()
    if data_dir:
        overrides["data_dir"] = Path(data_dir)

    level = env.get("SKYVIEW_LOG_LEVEL", "").strip()
    if level:
        overrides["log_level"] = level.upper()

    radius = env.get("SKYVIEW_PICK_RADIUS", "").strip()
    if radius:
        value = float(radius)
        if value <= 0:
            raise ValueError(f"SKYVIEW_PICK_RADIUS must be positive, got {radius}")
        overrides["pick_radius_px"] = value

    return replace(CFG, **overrides)


def configure_logging(level: str | int = "INFO") -> None:
    """Install a basic stderr handler on the root logger (no-op if one exists)."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def configure_astropy() -> None:
    """Keep AltAz transforms offline.

    The bundled IERS-B table is used; instants outside it only warn.
    """
    iers.conf.auto_download = False
    iers.conf.iers_degraded_accuracy = "warn"
    LOG.debug("astropy IERS auto-download disabled")


__all__ = [
    "CFG",
    "SkyViewCfg",
    "configure_astropy",
    "configure_logging",
    "load_config",
]
