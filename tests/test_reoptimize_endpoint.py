import pytest

from gremind.api import create_app
from gremind.errors import PlacesAPIError
from gremind.models import Place


class FakePlaces:
    def __init__(self, result=None):
        self.result = result if result is not None else []
        self.calls = []

    def nearby_search(self, keyword, location, radius=5000):
        self.calls.append((keyword, location, radius))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture
def make_client():
    def _make(result=None):
        places = FakePlaces(result)
        app = create_app(places_api=places)
        app.config["TESTING"] = True
        return app.test_client(), places

    return _make


def test_returns_places(make_client):
    client, places = make_client(
        [Place(name="Walgreens", lat=37.4231, lng=-122.0855, place_id="abc", vicinity="Main St")]
    )
    resp = client.get("/api/reoptimize?keyword=pharmacy&lat=37.422&lng=-122.084")

    assert resp.status_code == 200
    assert resp.get_json() == [
        {
            "name": "Walgreens",
            "lat": 37.4231,
            "lng": -122.0855,
            "placeId": "abc",
            "vicinity": "Main St",
        }
    ]
    keyword, location, radius = places.calls[0]
    assert keyword == "pharmacy"
    assert (location.lat, location.lng) == (37.422, -122.084)
    assert radius == 5000


def test_custom_radius(make_client):
    client, places = make_client()
    resp = client.get("/api/reoptimize?keyword=atm&lat=1&lng=2&radius=750")
    assert resp.status_code == 200
    assert resp.get_json() == []
    assert places.calls[0][2] == 750


@pytest.mark.parametrize(
    "query",
    [
        "lat=1&lng=2",
        "keyword=atm&lng=2",
        "keyword=atm&lat=1",
        "keyword=&lat=1&lng=2",
    ],
)
def test_missing_parameters(make_client, query):
    client, places = make_client()
    resp = client.get(f"/api/reoptimize?{query}")
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Missing parameters"}
    assert places.calls == []


@pytest.mark.parametrize(
    "query",
    [
        "keyword=atm&lat=abc&lng=2",
        "keyword=atm&lat=95&lng=2",
        "keyword=atm&lat=1&lng=2&radius=-5",
        "keyword=atm&lat=1&lng=2&radius=wide",
    ],
)
def test_invalid_parameters(make_client, query):
    client, places = make_client()
    resp = client.get(f"/api/reoptimize?{query}")
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Invalid parameters"}
    assert places.calls == []


def test_provider_failure_returns_500(make_client, caplog):
    client, _ = make_client(PlacesAPIError("REQUEST_DENIED"))
    with caplog.at_level("ERROR"):
        resp = client.get("/api/reoptimize?keyword=atm&lat=1&lng=2")
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Failed to call Places API"}
    assert "REQUEST_DENIED" in caplog.text
