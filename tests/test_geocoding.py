import pytest
import requests

from fakes import DictGeocoder
from skills.geocoding import NYC, MapboxGeocoder, NominatimGeocoder, build_geocoder, geocode
from stamper.exceptions import GeocodeMiss


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.exceptions.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, params=None, timeout=None, headers=None):
        self.requests.append({"url": url, "params": params, "headers": headers})
        if self.error:
            raise self.error
        return self.response


def test_blank_query_skips_provider_and_delay():
    geocoder = DictGeocoder()
    sleeps = []

    with pytest.raises(GeocodeMiss):
        geocode("   ", geocoder, sleep=sleeps.append)
    assert geocoder.queries == []
    assert sleeps == []


def test_miss_still_waits_and_is_not_retried():
    geocoder = DictGeocoder()
    sleeps = []

    with pytest.raises(GeocodeMiss) as excinfo:
        geocode("Atlantis, NYC", geocoder, delay=0.4, sleep=sleeps.append)
    assert excinfo.value.query == "Atlantis, NYC"
    assert geocoder.queries == ["Atlantis, NYC"]
    assert sleeps == [0.4]


def test_hit_returns_point():
    geocoder = DictGeocoder({"Union Square, Manhattan, NYC": (40.7359, -73.9911)})

    point = geocode(" Union Square, Manhattan, NYC ", geocoder, sleep=lambda s: None)

    assert (point.lat, point.lng) == (40.7359, -73.9911)


def test_mapbox_request_and_parse():
    session = FakeSession(FakeResponse({
        "features": [{"center": [-73.9855, 40.758], "place_name": "Times Square, New York"}],
    }))
    geocoder = MapboxGeocoder("tok", session=session)

    point = geocoder.lookup("Broadway & W 42nd St, Manhattan", NYC)

    assert (point.lat, point.lng) == (40.758, -73.9855)
    assert point.place_name == "Times Square, New York"
    request = session.requests[0]
    assert request["url"].endswith("/Broadway%20%26%20W%2042nd%20St%2C%20Manhattan.json")
    assert request["params"]["bbox"] == "-74.05,40.68,-73.9,40.85"
    assert request["params"]["types"] == "poi,address,neighborhood,place"
    assert request["params"]["limit"] == 1


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(FakeResponse({"features": []})),
        FakeSession(FakeResponse({}, status=401)),
        FakeSession(error=requests.exceptions.ConnectionError("down")),
        FakeSession(FakeResponse({"features": [{"center": [None, None], "place_name": "Nowhere"}]})),
    ],
)
def test_mapbox_failures_are_misses(session):
    assert MapboxGeocoder("tok", session=session).lookup("somewhere", NYC) is None


def test_nominatim_bounded_search():
    session = FakeSession(FakeResponse([{"lat": "40.7411", "lon": "-73.9897", "display_name": "Flatiron"}]))

    point = NominatimGeocoder(session=session).lookup("Flatiron Building", NYC)

    assert (point.lat, point.lng, point.place_name) == (40.7411, -73.9897, "Flatiron")
    params = session.requests[0]["params"]
    assert params["bounded"] == 1
    assert params["viewbox"] == "-74.05,40.85,-73.9,40.68"
    assert "User-Agent" in session.requests[0]["headers"]


def test_build_geocoder():
    assert build_geocoder("nominatim").name == "nominatim"
    assert build_geocoder("mapbox", "tok").name == "mapbox"
    with pytest.raises(ValueError):
        build_geocoder("mapbox")


@pytest.mark.parametrize(
    "payload",
    [
        [],
        [{"display_name": "Flatiron"}],
        [{"lat": None, "lon": "-73.9897"}],
    ],
)
def test_nominatim_unusable_results_are_misses(payload):
    session = FakeSession(FakeResponse(payload))

    assert NominatimGeocoder(session=session).lookup("Flatiron Building", NYC) is None


def test_malformed_provider_data_is_a_geocode_miss():
    session = FakeSession(FakeResponse({"features": [{"center": [None, None]}]}))
    sleeps = []

    with pytest.raises(GeocodeMiss):
        geocode("Nowhere, NYC", MapboxGeocoder("tok", session=session), sleep=sleeps.append)
    assert sleeps == [0.4]
