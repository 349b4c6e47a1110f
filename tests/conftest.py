from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from skyview.catalog import Asterism, StarCatalogue
from skyview.config import configure_astropy
from skyview.coordinates import GeographicCoordinates, HorizontalCoordinates
from skyview.objects import Star
from skyview.projection import StereographicProjection

from tests.factories import make_star

configure_astropy()

ZURICH = ZoneInfo("Europe/Zurich")


@pytest.fixture
def when() -> datetime:
    return datetime(2020, 4, 4, 21, 0, tzinfo=ZURICH)


@pytest.fixture
def where() -> GeographicCoordinates:
    return GeographicCoordinates(6.57, 46.52)


@pytest.fixture
def projection() -> StereographicProjection:
    return StereographicProjection(HorizontalCoordinates(180.0, 15.0))


@pytest.fixture
def stars() -> list[Star]:
    return [
        make_star(11767, "Polaris", 37.95, 89.26, 1.97, 0.64),
        make_star(32349, "Sirius", 101.29, -16.72, -1.44, 0.0),
        make_star(27989, "Betelgeuse", 88.79, 7.41, 0.45, 1.5),
        make_star(24436, "Rigel", 78.63, -8.20, 0.18, -0.03),
        make_star(26727, "Alnitak", 85.19, -1.94, 1.74, -0.2),
        make_star(26311, "Alnilam", 84.05, -1.20, 1.69, -0.18),
        make_star(25930, "Mintaka", 83.00, -0.30, 2.25, -0.17),
    ]


@pytest.fixture
def catalogue(stars: list[Star]) -> StarCatalogue:
    belt = Asterism((stars[4], stars[5], stars[6]), name="belt")
    diagonal = Asterism((stars[2], stars[3]), name="diagonal")
    return StarCatalogue(stars, [belt, diagonal])
