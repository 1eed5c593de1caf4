"""
Shared pytest fixtures for the enrichment test suite.

Provides a scripted geocoder and sample Pride events so no test touches the network.
"""
import pytest

from src.geocoding.google import NotFound, Resolved
from src.models.event import Coordinate


class FakeGeocoder:
    """Geocoder returning scripted outcomes and recording every call."""

    def __init__(self, outcomes=None):
        self.outcomes = outcomes or {}
        self.calls = []

    def resolve(self, address):
        self.calls.append(address)
        outcome = self.outcomes.get(address, NotFound("ZERO_RESULTS"))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def stockholm():
    return Coordinate(lat=59.33, lon=18.06)


@pytest.fixture
def fake_geocoder(stockholm):
    return FakeGeocoder({
        "Stockholm": Resolved(stockholm),
        "Medborgarplatsen": Resolved(Coordinate(lat=59.3142, lon=18.0735)),
    })


@pytest.fixture
def sample_events():
    return [
        {"id": 1, "title": "A", "location": {"address": "Stockholm"}},
        {"id": 2, "title": "B", "area": {"address": ""}},
        {"id": 3, "title": "C", "location": {"address": "Stockholm"}},
    ]


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    """Keep the rate limiter from really sleeping; the recorded delays are available to tests."""
    delays = []
    monkeypatch.setattr("src.geocoding.rate_limit.time.sleep", delays.append)
    return delays
