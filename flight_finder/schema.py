from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple

from .types import CabinClass, StopsBucket, TripType


def _require_aware(value: datetime) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"Timestamp {value.isoformat()} has no UTC offset")
    return value


def _parse_instant(value: Any) -> datetime:
    """
    Parse an ISO 8601 instant.

    Raises:
        ValueError: If the value is malformed or carries no UTC offset
    """
    if isinstance(value, datetime):
        return _require_aware(value)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return _require_aware(datetime.fromisoformat(text))


@dataclass(frozen=True)
class Airport:
    """An airport as embedded in flight offers and the airport directory."""
    code: str
    city: str
    name: str
    country: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "city": self.city,
            "name": self.name,
            "country": self.country,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Airport":
        return cls(
            code=data["code"],
            city=data.get("city", ""),
            name=data.get("name", ""),
            country=data.get("country", ""),
        )


@dataclass(frozen=True)
class Airline:
    """Marketing or operating carrier."""
    code: str
    name: str
    logo: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "name": self.name, "logo": self.logo}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Airline":
        return cls(code=data["code"], name=data.get("name", data["code"]), logo=data.get("logo"))


@dataclass(frozen=True)
class Price:
    """Non-negative amount with an ISO currency code."""
    amount: float
    currency: str = "EUR"

    def to_dict(self) -> Dict[str, Any]:
        return {"amount": self.amount, "currency": self.currency}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Price":
        return cls(amount=data["amount"], currency=data.get("currency", "EUR"))


@dataclass(frozen=True)
class FlightSegment:
    """One leg of an itinerary."""
    departure_airport: Airport
    departure_time: datetime
    arrival_airport: Airport
    arrival_time: datetime
    duration: int  # minutes
    flight_number: str
    airline: Airline

    def to_dict(self) -> Dict[str, Any]:
        return {
            "departure": {
                "airport": self.departure_airport.to_dict(),
                "time": self.departure_time.isoformat(),
            },
            "arrival": {
                "airport": self.arrival_airport.to_dict(),
                "time": self.arrival_time.isoformat(),
            },
            "duration": self.duration,
            "flight_number": self.flight_number,
            "airline": self.airline.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FlightSegment":
        return cls(
            departure_airport=Airport.from_dict(data["departure"]["airport"]),
            departure_time=_parse_instant(data["departure"]["time"]),
            arrival_airport=Airport.from_dict(data["arrival"]["airport"]),
            arrival_time=_parse_instant(data["arrival"]["time"]),
            duration=int(data["duration"]),
            flight_number=data.get("flight_number") or data.get("flightNumber", ""),
            airline=Airline.from_dict(data["airline"]),
        )


@dataclass(frozen=True)
class Flight:
    """
    A single flight offer produced by a provider.

    Instances are immutable values. ``departure_time`` and ``arrival_time``
    are timezone-aware instants expressed in the departure/arrival airport's
    local offset, so ``departure_hour`` is the local hour of departure.
    Naive timestamps are rejected with ``ValueError``.
    """
    id: str
    airline: Airline
    origin: Airport
    destination: Airport
    departure_time: datetime
    arrival_time: datetime
    duration: int  # total minutes
    stops: int
    price: Price
    segments: Tuple[FlightSegment, ...] = ()
    seats_left: Optional[int] = None

    def __post_init__(self) -> None:
        _require_aware(self.departure_time)
        _require_aware(self.arrival_time)

    @property
    def departure_hour(self) -> int:
        return self.departure_time.hour

    @property
    def stop_bucket(self) -> StopsBucket:
        return StopsBucket.for_stops(self.stops)

    @property
    def is_consistent(self) -> bool:
        """
        Check the itinerary invariants.

        ``stops`` must equal ``len(segments) - 1``, ``duration`` must match the
        timestamps, and segments must chain airport to airport in time order.
        Offers whose segments are not itemised (empty tuple) only get the
        duration check.
        """
        elapsed = (self.arrival_time - self.departure_time).total_seconds() / 60
        if round(elapsed) != self.duration:
            return False
        if not self.segments:
            return True
        if self.stops != len(self.segments) - 1:
            return False
        for current, following in zip(self.segments, self.segments[1:]):
            if current.arrival_airport.code != following.departure_airport.code:
                return False
            if following.departure_time < current.arrival_time:
                return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "airline": self.airline.to_dict(),
            "origin": self.origin.to_dict(),
            "destination": self.destination.to_dict(),
            "departure_time": self.departure_time.isoformat(),
            "arrival_time": self.arrival_time.isoformat(),
            "duration": self.duration,
            "stops": self.stops,
            "price": self.price.to_dict(),
            "segments": [s.to_dict() for s in self.segments],
            "seats_left": self.seats_left,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Flight":
        return cls(
            id=str(data["id"]),
            airline=Airline.from_dict(data["airline"]),
            origin=Airport.from_dict(data["origin"]),
            destination=Airport.from_dict(data["destination"]),
            departure_time=_parse_instant(data["departure_time"]),
            arrival_time=_parse_instant(data["arrival_time"]),
            duration=int(data["duration"]),
            stops=int(data["stops"]),
            price=Price.from_dict(data["price"]),
            segments=tuple(FlightSegment.from_dict(s) for s in data.get("segments") or []),
            seats_left=data.get("seats_left"),
        )


@dataclass(frozen=True)
class SearchParams:
    """Parameters of one issued search. Never mutated after issue."""
    origin: str
    destination: str
    departure_date: date
    return_date: Optional[date] = None
    passengers: int = 1
    cabin_class: Optional[CabinClass] = None

    @property
    def trip_type(self) -> TripType:
        return "round-trip" if self.return_date else "one-way"

    @property
    def cache_key(self) -> str:
        return "-".join([
            self.origin,
            self.destination,
            self.departure_date.isoformat(),
            self.return_date.isoformat() if self.return_date else "",
            str(self.passengers),
        ])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "origin": self.origin,
            "destination": self.destination,
            "departure_date": self.departure_date.isoformat(),
            "return_date": self.return_date.isoformat() if self.return_date else None,
            "passengers": self.passengers,
            "cabin_class": self.cabin_class,
        }


@dataclass(frozen=True)
class PriceDataPoint:
    """Cheapest observed price for one day of a price calendar."""
    date: date
    price: int
    flight_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "price": self.price,
            "flight_count": self.flight_count,
        }


__all__ = [
    "Airport",
    "Airline",
    "Price",
    "FlightSegment",
    "Flight",
    "SearchParams",
    "PriceDataPoint",
]
