"""
Deterministic sample data.

Used by the mock provider, as the fallback when a real provider fails, and
by the price calendar endpoint. The catalogue is fixed: the same search
always yields the same 15 flights on the requested date.
"""

from __future__ import annotations

import random
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import List, NamedTuple, Optional, Sequence, Tuple

from .directory import AIRLINES, get_airport_directory
from .schema import Airline, Airport, Flight, FlightSegment, Price, PriceDataPoint, SearchParams

BASE_DURATION = 120  # minutes
LAYOVER_MINUTES = 60
WEEKEND_MULTIPLIER = 1.3


class CatalogueEntry(NamedTuple):
    id: str
    airline: str
    hour: int
    minute: int
    extra_minutes: int
    stops: int
    price: int
    seats_left: int


CATALOGUE: Tuple[CatalogueEntry, ...] = (
    # Nonstop
    CatalogueEntry("FL001", "IB", 6, 30, 0, 0, 89, 4),
    CatalogueEntry("FL002", "VY", 8, 15, 10, 0, 45, 12),
    CatalogueEntry("FL003", "FR", 10, 45, 5, 0, 35, 2),
    CatalogueEntry("FL004", "U2", 14, 20, 15, 0, 52, 8),
    CatalogueEntry("FL005", "LH", 16, 0, 0, 0, 125, 15),
    CatalogueEntry("FL006", "AF", 18, 30, 20, 0, 98, 6),
    CatalogueEntry("FL007", "BA", 20, 45, 10, 0, 142, 3),
    # One stop
    CatalogueEntry("FL008", "KL", 7, 0, 180, 1, 78, 9),
    CatalogueEntry("FL009", "AZ", 9, 30, 150, 1, 65, 5),
    CatalogueEntry("FL010", "UX", 11, 15, 120, 1, 72, 11),
    CatalogueEntry("FL011", "LH", 13, 45, 200, 1, 95, 7),
    CatalogueEntry("FL012", "AF", 15, 30, 165, 1, 82, 4),
    # Two stops
    CatalogueEntry("FL013", "IB", 5, 45, 360, 2, 55, 14),
    CatalogueEntry("FL014", "KL", 8, 0, 420, 2, 48, 10),
    CatalogueEntry("FL015", "BA", 12, 30, 300, 2, 62, 6),
)

# Connection airports per carrier, in order of preference
HUBS = {
    "IB": ("MAD", "LHR", "BCN"),
    "VY": ("BCN", "MAD", "FCO"),
    "FR": ("STN", "DUB", "BGY"),
    "U2": ("LGW", "GVA", "BER"),
    "LH": ("FRA", "MUC", "ZRH"),
    "AF": ("CDG", "AMS", "ORY"),
    "BA": ("LHR", "MAD", "LGW"),
    "KL": ("AMS", "CDG", "FRA"),
    "AZ": ("FCO", "MXP", "MAD"),
    "UX": ("MAD", "LIS", "BCN"),
}
DEFAULT_HUBS = ("FRA", "AMS", "CDG", "MUC", "ZRH", "LHR")


def _airport(code: str) -> Airport:
    airport = get_airport_directory().by_code(code)
    if airport is None:
        return Airport(code=code.upper(), city=code.upper(), name=f"{code.upper()} Airport", country="")
    return airport


def _connections(airline: str, stops: int, origin: str, destination: str) -> List[str]:
    candidates = HUBS.get(airline, ()) + DEFAULT_HUBS
    chosen: List[str] = []
    for code in candidates:
        if len(chosen) == stops:
            break
        if code not in (origin, destination) and code not in chosen:
            chosen.append(code)
    return chosen


def _build_segments(
    entry: CatalogueEntry,
    airline: Airline,
    route: Sequence[Airport],
    departure: datetime,
    duration: int,
) -> Tuple[FlightSegment, ...]:
    legs = len(route) - 1
    flying = duration - entry.stops * LAYOVER_MINUTES
    leg_minutes = [flying // legs] * legs
    leg_minutes[-1] += flying - sum(leg_minutes)

    segments = []
    current = departure
    for index in range(legs):
        arrival = current + timedelta(minutes=leg_minutes[index])
        segments.append(FlightSegment(
            departure_airport=route[index],
            departure_time=current,
            arrival_airport=route[index + 1],
            arrival_time=arrival,
            duration=leg_minutes[index],
            flight_number=f"{airline.code}{int(entry.id[2:]) * 10 + index + 100}",
            airline=airline,
        ))
        current = arrival + timedelta(minutes=LAYOVER_MINUTES)
    return tuple(segments)


def generate_mock_flights(params: SearchParams, tz: tzinfo = timezone.utc) -> List[Flight]:
    """
    Build the sample catalogue for a search.

    Args:
        params: Route and date to place the flights on
        tz: Offset the departure and arrival instants are expressed in

    Returns:
        15 flights (7 nonstop, 5 one-stop, 3 two-stop) in catalogue order
    """
    origin = _airport(params.origin)
    destination = _airport(params.destination)

    flights = []
    for entry in CATALOGUE:
        airline = AIRLINES[entry.airline]
        duration = BASE_DURATION + entry.extra_minutes
        departure = datetime.combine(params.departure_date, time(entry.hour, entry.minute), tzinfo=tz)
        hubs = [_airport(code) for code in _connections(entry.airline, entry.stops, origin.code, destination.code)]
        route = [origin, *hubs, destination]

        flights.append(Flight(
            id=entry.id,
            airline=airline,
            origin=origin,
            destination=destination,
            departure_time=departure,
            arrival_time=departure + timedelta(minutes=duration),
            duration=duration,
            stops=entry.stops,
            price=Price(entry.price * params.passengers, "EUR"),
            segments=_build_segments(entry, airline, route, departure, duration),
            seats_left=entry.seats_left,
        ))
    return flights


def generate_price_graph_data(
    origin: str,
    destination: str,
    start_date: date,
    days: int = 30,
    seed: Optional[int] = None,
) -> List[PriceDataPoint]:
    """
    Sample cheapest-price-per-day series for a price calendar.

    Weekend days carry a 30% surcharge.

    Args:
        origin: Origin airport code
        destination: Destination airport code
        start_date: First day of the series
        days: Number of days
        seed: Seed for reproducible output; random when omitted

    Returns:
        One PriceDataPoint per day, in date order
    """
    rng = random.Random(seed)
    points = []
    for offset in range(days):
        day = start_date + timedelta(days=offset)
        base_price = 60 + rng.random() * 40
        multiplier = WEEKEND_MULTIPLIER if day.weekday() >= 5 else 1.0
        variation = 0.8 + rng.random() * 0.4
        points.append(PriceDataPoint(
            date=day,
            price=round(base_price * multiplier * variation),
            flight_count=int(8 + rng.random() * 8),
        ))
    return points


__all__ = [
    "CATALOGUE",
    "HUBS",
    "generate_mock_flights",
    "generate_price_graph_data",
]
