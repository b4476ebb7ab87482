import asyncio
import json
import sys
from pathlib import Path

import pytest

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from location_requests.models.request_model import Authorization  # noqa: E402
from location_requests.services.scheduler import LocationScheduler  # noqa: E402


class FakeSensor:
    """Stands in for the device sensing subsystem."""

    def __init__(self, authorization=Authorization.ALWAYS, monitoring_available=True):
        self.authorization = authorization
        self.monitoring_available = monitoring_available
        self.state_queries = []

    def authorization_status(self):
        return self.authorization

    def is_region_monitoring_available(self):
        return self.monitoring_available

    def request_region_state(self, region):
        self.state_queries.append(region)


class FakeTransport:
    """Records every query; optionally waits on a gate or sleeps before answering."""

    def __init__(self, payload=b"", gate=None, delay=0.0, error=None):
        self.payload = payload
        self.gate = gate
        self.delay = delay
        self.error = error
        self.calls = []
        self.called = asyncio.Event()

    async def issue(self, query, timeout):
        self.calls.append(query)
        self.called.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def sensor():
    return FakeSensor()


@pytest.fixture
def scheduler():
    return LocationScheduler()


@pytest.fixture
def make_transport():
    return FakeTransport


@pytest.fixture
def make_sensor():
    return FakeSensor


@pytest.fixture
def google_geocode_payload():
    return json.dumps({
        "status": "OK",
        "results": [{
            "place_id": "ChIJ2eUgeAK6j4ARbn5u_wAGqWA",
            "formatted_address": "1600 Amphitheatre Pkwy, Mountain View, CA 94043, USA",
            "types": ["street_address"],
            "geometry": {"location": {"lat": 37.4224764, "lng": -122.0842499}},
            "address_components": [
                {"long_name": "1600", "short_name": "1600", "types": ["street_number"]},
                {"long_name": "Amphitheatre Parkway", "short_name": "Amphitheatre Pkwy", "types": ["route"]},
                {"long_name": "Mountain View", "short_name": "Mountain View", "types": ["locality", "political"]},
                {"long_name": "California", "short_name": "CA", "types": ["administrative_area_level_1", "political"]},
                {"long_name": "United States", "short_name": "US", "types": ["country", "political"]},
                {"long_name": "94043", "short_name": "94043", "types": ["postal_code"]},
            ],
        }],
    }).encode()


@pytest.fixture
def google_autocomplete_payload():
    return json.dumps({
        "status": "OK",
        "predictions": [{
            "place_id": "ChIJLU7jZClu5kcR4PcOOO6p3I0",
            "description": "Eiffel Tower, Avenue Anatole France, Paris, France",
            "types": ["tourist_attraction", "establishment"],
            "structured_formatting": {
                "main_text": "Eiffel Tower",
                "secondary_text": "Avenue Anatole France, Paris, France",
            },
        }],
    }).encode()


@pytest.fixture
def google_detail_payload():
    return json.dumps({
        "status": "OK",
        "result": {
            "place_id": "ChIJLU7jZClu5kcR4PcOOO6p3I0",
            "name": "Eiffel Tower",
            "formatted_address": "Av. Gustave Eiffel, 75007 Paris, France",
            "geometry": {"location": {"lat": 48.8583701, "lng": 2.2944813}},
            "address_components": [
                {"long_name": "Paris", "short_name": "Paris", "types": ["locality", "political"]},
                {"long_name": "France", "short_name": "FR", "types": ["country", "political"]},
            ],
            "types": ["tourist_attraction"],
        },
    }).encode()


@pytest.fixture
def nominatim_search_payload():
    return json.dumps([{
        "place_id": 307120416,
        "lat": "41.8902102",
        "lon": "12.4922309",
        "class": "tourism",
        "type": "attraction",
        "name": "Colosseo",
        "display_name": "Colosseo, Piazza del Colosseo, Roma, Lazio, 00184, Italia",
        "address": {
            "tourism": "Colosseo",
            "road": "Piazza del Colosseo",
            "city": "Roma",
            "state": "Lazio",
            "postcode": "00184",
            "country": "Italia",
            "country_code": "it",
        },
    }]).encode()
