"""
Search history and favorite flights.

Both are small in-memory, most-recent-first lists with a size cap. They are
write-only from the derivation core's point of view: filtering and sorting
never read them. ``to_list``/``load`` round-trip through plain dicts so a
caller can persist them wherever it likes.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from .config import get_config
from .directory import get_airport_directory
from .schema import Flight, SearchParams
from .types import AirportDirectory
from .utils import generate_id

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


# ============================================================================
# Data Models
# ============================================================================

@dataclass(frozen=True)
class HistoryEntry:
    """One past search."""
    id: str
    origin: str
    origin_city: str
    destination: str
    destination_city: str
    departure_date: date
    return_date: Optional[date]
    passengers: int
    searched_at: datetime

    def same_search(self, params: SearchParams) -> bool:
        return (
            self.origin == params.origin
            and self.destination == params.destination
            and self.departure_date == params.departure_date
        )

    def to_search_params(self) -> SearchParams:
        return SearchParams(
            origin=self.origin,
            destination=self.destination,
            departure_date=self.departure_date,
            return_date=self.return_date,
            passengers=self.passengers,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "origin": self.origin,
            "origin_city": self.origin_city,
            "destination": self.destination,
            "destination_city": self.destination_city,
            "departure_date": self.departure_date.isoformat(),
            "return_date": self.return_date.isoformat() if self.return_date else None,
            "passengers": self.passengers,
            "searched_at": self.searched_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        """Create from dictionary."""
        return_date = data.get("return_date")
        return cls(
            id=data["id"],
            origin=data["origin"],
            origin_city=data.get("origin_city", data["origin"]),
            destination=data["destination"],
            destination_city=data.get("destination_city", data["destination"]),
            departure_date=date.fromisoformat(data["departure_date"]),
            return_date=date.fromisoformat(return_date) if return_date else None,
            passengers=data.get("passengers", 1),
            searched_at=_parse_datetime(data["searched_at"]),
        )


@dataclass(frozen=True)
class FavoriteFlight:
    """Snapshot of a saved flight, detached from any result set."""
    id: str
    flight_id: str
    airline: str
    airline_code: str
    origin: str
    origin_city: str
    destination: str
    destination_city: str
    price: float
    currency: str
    duration: int
    stops: int
    saved_at: datetime

    @classmethod
    def from_flight(cls, flight: Flight) -> "FavoriteFlight":
        return cls(
            id=generate_id("fav"),
            flight_id=flight.id,
            airline=flight.airline.name,
            airline_code=flight.airline.code,
            origin=flight.origin.code,
            origin_city=flight.origin.city,
            destination=flight.destination.code,
            destination_city=flight.destination.city,
            price=flight.price.amount,
            currency=flight.price.currency,
            duration=flight.duration,
            stops=flight.stops,
            saved_at=_now(),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "flight_id": self.flight_id,
            "airline": self.airline,
            "airline_code": self.airline_code,
            "origin": self.origin,
            "origin_city": self.origin_city,
            "destination": self.destination,
            "destination_city": self.destination_city,
            "price": self.price,
            "currency": self.currency,
            "duration": self.duration,
            "stops": self.stops,
            "saved_at": self.saved_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FavoriteFlight":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            flight_id=data["flight_id"],
            airline=data.get("airline", ""),
            airline_code=data.get("airline_code", ""),
            origin=data["origin"],
            origin_city=data.get("origin_city", data["origin"]),
            destination=data["destination"],
            destination_city=data.get("destination_city", data["destination"]),
            price=data.get("price", 0.0),
            currency=data.get("currency", "EUR"),
            duration=data.get("duration", 0),
            stops=data.get("stops", 0),
            saved_at=_parse_datetime(data["saved_at"]),
        )


# ============================================================================
# Stores
# ============================================================================

class SearchHistory:
    """
    Recent searches, newest first.

    Repeating a search (same origin, destination and departure date) moves
    it to the top with a fresh timestamp instead of adding a duplicate.

    Attributes:
        max_items: Entries kept before the oldest is dropped
    """

    def __init__(
        self,
        max_items: Optional[int] = None,
        directory: Optional[AirportDirectory] = None,
    ):
        self.max_items = max_items if max_items is not None else get_config().history_max_items
        self._directory = directory or get_airport_directory()
        self._entries: List[HistoryEntry] = []
        self._lock = threading.Lock()

    def _city(self, code: str) -> str:
        airport = self._directory.by_code(code)
        return airport.city if airport else code

    def add(self, params: SearchParams) -> HistoryEntry:
        entry = HistoryEntry(
            id=generate_id("search"),
            origin=params.origin,
            origin_city=self._city(params.origin),
            destination=params.destination,
            destination_city=self._city(params.destination),
            departure_date=params.departure_date,
            return_date=params.return_date,
            passengers=params.passengers,
            searched_at=_now(),
        )
        with self._lock:
            remaining = [e for e in self._entries if not e.same_search(params)]
            self._entries = [entry, *remaining][: self.max_items]
        logger.debug(f"Recorded search {params.cache_key}")
        return entry

    def remove(self, entry_id: str) -> bool:
        with self._lock:
            before = len(self._entries)
            self._entries = [e for e in self._entries if e.id != entry_id]
            return len(self._entries) < before

    def clear(self) -> None:
        with self._lock:
            self._entries = []

    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def to_list(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._entries]

    def load(self, data: List[Dict[str, Any]]) -> None:
        """Replace the contents with previously saved entries."""
        entries = [HistoryEntry.from_dict(item) for item in data]
        with self._lock:
            self._entries = entries[: self.max_items]


class Favorites:
    """
    Saved flights, newest first, at most one per flight id.

    Attributes:
        max_items: Entries kept before the oldest is dropped
    """

    def __init__(self, max_items: Optional[int] = None):
        self.max_items = max_items if max_items is not None else get_config().favorites_max_items
        self._entries: List[FavoriteFlight] = []
        self._lock = threading.Lock()

    def add(self, flight: Flight) -> bool:
        """Save a flight. Returns False if it was already saved."""
        with self._lock:
            if any(f.flight_id == flight.id for f in self._entries):
                return False
            self._entries = [FavoriteFlight.from_flight(flight), *self._entries][: self.max_items]
            return True

    def remove(self, flight_id: str) -> bool:
        with self._lock:
            before = len(self._entries)
            self._entries = [f for f in self._entries if f.flight_id != flight_id]
            return len(self._entries) < before

    def toggle(self, flight: Flight) -> bool:
        """
        Save the flight, or unsave it if already saved.

        Returns:
            Whether the flight is saved afterwards
        """
        if self.remove(flight.id):
            return False
        return self.add(flight)

    def is_favorite(self, flight_id: str) -> bool:
        return any(f.flight_id == flight_id for f in self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries = []

    def entries(self) -> List[FavoriteFlight]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def to_list(self) -> List[Dict[str, Any]]:
        return [f.to_dict() for f in self._entries]

    def load(self, data: List[Dict[str, Any]]) -> None:
        """Replace the contents with previously saved entries."""
        entries = [FavoriteFlight.from_dict(item) for item in data]
        with self._lock:
            self._entries = entries[: self.max_items]


__all__ = [
    "HistoryEntry",
    "FavoriteFlight",
    "SearchHistory",
    "Favorites",
]
