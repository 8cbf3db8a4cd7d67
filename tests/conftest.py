from datetime import date, datetime, timedelta, timezone

import pytest

from flight_finder.config import configure, reset_config
from flight_finder.providers import reset_providers
from flight_finder.rate_limit import reset_rate_limiter
from flight_finder.schema import Airline, Airport, Flight, Price, SearchParams
from flight_finder.search import reset_search_cache

MAD = Airport("MAD", "Madrid", "Adolfo Suárez Madrid-Barajas", "Spain")
BCN = Airport("BCN", "Barcelona", "Barcelona-El Prat", "Spain")

AIRLINE_NAMES = {
    "FR": "Ryanair",
    "LH": "Lufthansa",
    "IB": "Iberia",
    "VY": "Vueling",
    "BA": "British Airways",
    "KL": "KLM",
}

TRAVEL_DAY = date(2030, 6, 14)


@pytest.fixture(autouse=True)
def clean_state(monkeypatch):
    """Fresh config and global caches for every test, independent of the host environment."""
    for name in (
        "FLIGHT_FINDER_PROVIDER",
        "FLIGHT_FINDER_USE_MOCK",
        "FLIGHT_FINDER_SERPAPI_API_KEY",
        "FLIGHT_FINDER_AMADEUS_API_KEY",
        "FLIGHT_FINDER_AMADEUS_API_SECRET",
        "FLIGHT_FINDER_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    configure(retry_base_delay=0.0, retry_jitter=False)
    reset_search_cache()
    reset_providers()
    reset_rate_limiter()
    yield
    reset_config()
    reset_search_cache()
    reset_providers()
    reset_rate_limiter()


@pytest.fixture
def make_flight():
    """
    Build a flight with only the interesting fields specified.

    ``hour`` is the local departure hour; the departure instant carries a
    +02:00 offset so local and UTC hours differ.
    """
    tz = timezone(timedelta(hours=2))

    def _make(
        id,
        price=100,
        stops=0,
        airline="IB",
        hour=10,
        minute=0,
        duration=120,
        day=TRAVEL_DAY,
    ):
        departure = datetime(day.year, day.month, day.day, hour, minute, tzinfo=tz)
        return Flight(
            id=id,
            airline=Airline(airline, AIRLINE_NAMES.get(airline, airline)),
            origin=MAD,
            destination=BCN,
            departure_time=departure,
            arrival_time=departure + timedelta(minutes=duration),
            duration=duration,
            stops=stops,
            price=Price(price),
        )

    return _make


@pytest.fixture
def search_params():
    return SearchParams(origin="MAD", destination="BCN", departure_date=TRAVEL_DAY)
