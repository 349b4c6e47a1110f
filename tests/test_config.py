import logging
from pathlib import Path

import pytest
from astropy.utils import iers

from skyview.config import CFG, configure_astropy, configure_logging, load_config


def test_defaults():
    assert CFG.pick_radius_px == 10.0
    assert (CFG.default_center_az_deg, CFG.default_center_alt_deg, CFG.default_fov_deg) == (180.0, 15.0, 100.0)
    assert CFG.stars_path == CFG.data_dir / "hygdata_v3.csv"
    assert load_config({}) == CFG


def test_environment_overrides():
    cfg = load_config({
        "SKYVIEW_DATA_DIR": "/srv/sky",
        "SKYVIEW_LOG_LEVEL": "debug",
        "SKYVIEW_PICK_RADIUS": "4.5",
    })
    assert cfg.asterisms_path == Path("/srv/sky/asterisms.txt")
    assert cfg.log_level == "DEBUG"
    assert cfg.pick_radius_px == 4.5
    assert CFG.pick_radius_px == 10.0


@pytest.mark.parametrize("radius", ["0", "-3", "wide"])
def test_bad_pick_radius(radius):
    with pytest.raises(ValueError):
        load_config({"SKYVIEW_PICK_RADIUS": radius})


def test_configure_astropy_stays_offline():
    configure_astropy()
    assert iers.conf.auto_download is False


def test_configure_logging_accepts_names(caplog):
    configure_logging("DEBUG")
    with caplog.at_level(logging.INFO, logger="skyview"):
        logging.getLogger("skyview.test").info("hello")
    assert "hello" in caplog.text
