import threading
from types import SimpleNamespace

import pytest

import app as skyapp
from skyview.animation import NamedTimeAccelerator, TimeAnimator, continuous
from skyview.canvas import SkyCanvasManager
from skyview.cities import City
from skyview.config import CFG
from skyview.coordinates import GeographicCoordinates, HorizontalCoordinates
from skyview.state import DateTimeBean, ObserverLocationBean, ViewingParametersBean


@pytest.fixture
def session(catalogue, when, monkeypatch):
    date_time = DateTimeBean(when)
    observer = ObserverLocationBean(6.57, 46.52)
    view = ViewingParametersBean(HorizontalCoordinates(180.0, 15.0), 100.0)
    manager = SkyCanvasManager(catalogue, date_time, observer, view, canvas_size=(800, 600))
    sky_session = skyapp.SkySession(
        cfg=CFG,
        date_time=date_time,
        observer=observer,
        view=view,
        manager=manager,
        animator=TimeAnimator(date_time, continuous(300)),
        cities=[City("Lausanne", "Switzerland", GeographicCoordinates(6.6335, 46.5198))],
    )
    monkeypatch.setattr(skyapp, "get_session", lambda: sky_session)
    return sky_session


@pytest.fixture
def client(session):
    skyapp.app.config["TESTING"] = True
    return skyapp.app.test_client()


def test_index(client):
    state = client.get("/").get_json()
    assert state["time"].startswith("2020-04-04T21:00:00")
    assert state["view"] == {"az": 180.0, "alt": 15.0, "fov": 100.0}
    assert state["clock"]["running"] is False
    assert "300×" in state["accelerators"]


def test_sky(client, catalogue):
    body = client.get("/sky").get_json()
    assert body["sun"]["kind"] == "sun"
    assert body["moon"]["info"].startswith("Moon (")
    assert [p["name"] for p in body["planets"]][:2] == ["Mercury", "Venus"]
    assert len(body["stars"]) == 2 * len(catalogue)
    assert sorted(body["asterisms"]) == [[2, 3], [4, 5, 6]]


def test_observer_from_city_and_coordinates(client, session):
    client.post("/observer", data={"city": "lausanne"})
    assert session.observer.lon_deg == 6.6335

    assert client.post("/observer", data={"city": "Atlantis"}).status_code == 404

    resp = client.post("/observer", data={"lat": "42.5", "lon": "-71.25"})
    assert resp.get_json()["observer"] == {"lon": -71.25, "lat": 42.5, "label": "42° 30' 0\" N, 71° 15' 0\" W"}


@pytest.mark.parametrize("form", [{"lat": "95", "lon": "0"}, {"lat": "north", "lon": "0"}])
def test_observer_bad_input(client, form):
    resp = client.post("/observer", data=form)
    assert resp.status_code == 400


def test_time_is_locked_while_running(client):
    client.post("/clock/start")
    resp = client.post("/time", data={"date": "2021-01-01", "time": "22:00", "tz": "UTC"})
    assert resp.status_code == 409

    client.post("/clock/stop")
    resp = client.post("/time", data={"date": "2021-01-01", "time": "22:00", "tz": "UTC"})
    assert resp.get_json()["time"].startswith("2021-01-01T22:00:00")


@pytest.mark.parametrize(
    "form",
    [{"date": "2021-01-01"}, {"date": "01/01/2021", "time": "22:00"}, {"date": "2021-01-01", "time": "22:00", "tz": "Mars/Base"}],
)
def test_time_bad_input(client, form):
    assert client.post("/time", data=form).status_code == 400


def test_view_zoom_and_pan(client):
    state = client.post("/view", data={"d_fov": "500"}).get_json()
    assert state["view"]["fov"] == 150.0
    state = client.post("/view", data={"d_az": "-190", "d_alt": "100"}).get_json()
    assert (state["view"]["az"], state["view"]["alt"]) == (350.0, 90.0)
    state = client.post("/view", data={"reset_fov": "1", "az": "90"}).get_json()
    assert state["view"] == {"az": 90.0, "alt": 90.0, "fov": 100.0}


def test_degenerate_canvas_is_a_conflict(client):
    assert client.post("/canvas", data={"width": "0", "height": "600"}).status_code == 409
    assert client.post("/canvas", data={"width": "1024", "height": "768"}).get_json()["canvas"] == [1024.0, 768.0]


def test_pointer(client):
    body = client.post("/pointer", data={"x": "400", "y": "300"}).get_json()
    assert body["az"] == pytest.approx(180.0)
    assert body["alt"] == pytest.approx(15.0)
    assert body["label"].startswith("Azimuth: 180.00°")

    body = client.post("/pointer", data={"clear": "1"}).get_json()
    assert body == {"object": None, "az": None, "alt": None, "label": ""}


def test_clock_accelerator(client, session):
    client.post("/clock/accelerator", data={"name": "day"})
    assert session.animator.accelerator == NamedTimeAccelerator.DAY.accelerator
    assert client.post("/clock/accelerator", data={"name": "warp"}).status_code == 400


def test_sky_ticks_a_running_clock(client, session, monkeypatch):
    frames = iter([0, 2_000_000_000])
    monkeypatch.setattr(skyapp, "time", SimpleNamespace(monotonic_ns=lambda: next(frames)))
    client.post("/clock/start")
    client.get("/sky")
    client.get("/sky")
    assert session.date_time.zoned_date_time.minute == 10


@pytest.mark.parametrize("value, expected", [(1.26, 1.3), (3.14159, 3.1), (float("nan"), None),
                                             (float("inf"), None), (float("-inf"), None)])
def test_non_finite_pixels_become_null(value, expected):
    assert skyapp._json_number(value) == expected


def test_sky_with_a_body_at_the_view_antipode(client, session, monkeypatch):
    class AntipodeCanvas:
        def apply(self, point):
            return float("inf"), float("nan")

        def apply_many(self, flat):
            return [float("nan")] * len(flat)

    monkeypatch.setattr(type(session.manager), "plane_to_canvas", property(lambda self: AntipodeCanvas()))
    body = client.get("/sky").get_json()
    assert (body["sun"]["x"], body["sun"]["y"]) == (None, None)
    assert set(body["stars"]) == {None}


def test_concurrent_requests_share_one_snapshot(session):
    session.date_time.zoned_date_time = session.date_time.zoned_date_time.replace(hour=22)
    before = session.manager.observed_sky_node.computations
    barrier = threading.Barrier(4)
    statuses = []

    def fetch():
        client = skyapp.app.test_client()
        barrier.wait()
        statuses.append(client.get("/sky").status_code)

    threads = [threading.Thread(target=fetch) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert statuses == [200] * 4
    assert session.manager.observed_sky_node.computations == before + 1


def test_session_lock_is_released_after_a_rejected_request(client, session):
    assert client.post("/observer", data={"lat": "north", "lon": "0"}).status_code == 400
    assert not session.lock.locked()
    assert client.get("/").status_code == 200
