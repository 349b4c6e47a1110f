import io

import pytest

from skyview.cities import City, find_city, load_cities
from skyview.coordinates import GeographicCoordinates
from skyview.errors import InvalidInputError

CITIES_CSV = """\
"city","city_ascii","lat","lng","country"
"Zürich","Zurich","47.3786","8.5400","Switzerland"
"Lausanne","Lausanne","46.5198","6.6335","Switzerland"
"Suva","Suva","-18.1416","180.0000","Fiji"
"","","0","0","Nowhere"
"""


def test_load_cities_sorted_by_name():
    cities = load_cities(io.StringIO(CITIES_CSV))
    assert [c.name for c in cities] == ["Lausanne", "Suva", "Zurich"]
    assert cities[0] == City("Lausanne", "Switzerland", GeographicCoordinates(6.6335, 46.5198))


def test_antimeridian_longitude_wraps():
    (suva,) = [c for c in load_cities(io.StringIO(CITIES_CSV)) if c.name == "Suva"]
    assert suva.coordinates.lon_deg == -180.0


def test_bad_coordinates_are_rejected():
    with pytest.raises(InvalidInputError):
        load_cities(io.StringIO("city,lat,lng,country\nAtlantis,north,0,Sea\n"))
    with pytest.raises(InvalidInputError):
        load_cities(io.StringIO("city,lat,lng,country\nPole,95,0,Ice\n"))


def test_find_city():
    cities = load_cities(io.StringIO(CITIES_CSV))
    assert find_city(cities, "lausanne").country == "Switzerland"
    assert str(find_city(cities, " Zurich, Switzerland ")) == "Zurich, Switzerland"
    assert find_city(cities, "Geneva") is None
