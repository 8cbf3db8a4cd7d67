"""
Side-by-side comparison of up to N flights.

``ComparisonSet`` keeps flight identifiers in insertion order. When it is
full, toggling a new identifier is rejected, not evicting the oldest entry.
The set stores identifiers only and resolves them against the current
flight list on demand.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .schema import Flight
from .types import MAX_COMPARISON, ToggleOutcome

logger = logging.getLogger(__name__)


class ComparisonSet:
    """
    Ordered, capacity-bounded set of flight identifiers.

    Instances are immutable: ``toggle`` and ``clear`` return a new set, which
    lets an owner swap it in together with the flight list it belongs to.

    Example:
        >>> ids = ComparisonSet()
        >>> ids, outcome = ids.toggle("FL001")
        >>> outcome
        <ToggleOutcome.ADDED: 'added'>
    """

    __slots__ = ("_ids", "_capacity")

    def __init__(self, ids: Iterable[str] = (), capacity: int = MAX_COMPARISON):
        if capacity < 1:
            raise ValueError(f"Comparison capacity must be at least 1, got {capacity}")
        unique: List[str] = []
        for flight_id in ids:
            if flight_id not in unique:
                unique.append(flight_id)
        self._ids: Tuple[str, ...] = tuple(unique[:capacity])
        self._capacity = capacity

    @property
    def ids(self) -> Tuple[str, ...]:
        return self._ids

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_full(self) -> bool:
        return len(self._ids) >= self._capacity

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def __contains__(self, flight_id: object) -> bool:
        return flight_id in self._ids

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComparisonSet):
            return NotImplemented
        return self._ids == other._ids and self._capacity == other._capacity

    def __hash__(self) -> int:
        return hash((self._ids, self._capacity))

    def __repr__(self) -> str:
        return f"ComparisonSet(ids={list(self._ids)!r}, capacity={self._capacity})"

    def toggle(self, flight_id: str) -> Tuple["ComparisonSet", ToggleOutcome]:
        """
        Remove ``flight_id`` if present, otherwise append it.

        Returns:
            The resulting set and what happened. At capacity, a new id is
            rejected and the same set is returned.
        """
        if flight_id in self._ids:
            remaining = tuple(i for i in self._ids if i != flight_id)
            return ComparisonSet(remaining, self._capacity), ToggleOutcome.REMOVED
        if self.is_full:
            logger.debug(f"Comparison set full ({self._capacity}); ignoring {flight_id}")
            return self, ToggleOutcome.REJECTED_AT_CAPACITY
        return ComparisonSet(self._ids + (flight_id,), self._capacity), ToggleOutcome.ADDED

    def clear(self) -> "ComparisonSet":
        return ComparisonSet((), self._capacity)

    def resolve(self, flights: Sequence[Flight]) -> List[Flight]:
        """
        Map stored ids to flights, in stored order.

        Ids with no matching flight are dropped.
        """
        by_id: Dict[str, Flight] = {}
        for flight in flights:
            by_id.setdefault(flight.id, flight)
        return [by_id[i] for i in self._ids if i in by_id]


# ============================================================================
# Best indicators
# ============================================================================

@dataclass(frozen=True)
class ComparisonEntry:
    """A compared flight with its "best" markers."""
    flight: Flight
    is_best_price: bool
    is_best_duration: bool

    def to_dict(self) -> dict:
        return {
            "flight": self.flight.to_dict(),
            "is_best_price": self.is_best_price,
            "is_best_duration": self.is_best_duration,
        }


def best_price(flights: Sequence[Flight]) -> Optional[float]:
    """Lowest price amount, or None for an empty list."""
    if not flights:
        return None
    return min(f.price.amount for f in flights)


def best_duration(flights: Sequence[Flight]) -> Optional[int]:
    """Shortest duration in minutes, or None for an empty list."""
    if not flights:
        return None
    return min(f.duration for f in flights)


def mark_best(flights: Sequence[Flight]) -> List[ComparisonEntry]:
    """
    Flag the cheapest and the fastest flights.

    Every flight equal to the minimum is flagged, not just the first.
    """
    lowest_price = best_price(flights)
    shortest = best_duration(flights)
    return [
        ComparisonEntry(
            flight=flight,
            is_best_price=flight.price.amount == lowest_price,
            is_best_duration=flight.duration == shortest,
        )
        for flight in flights
    ]


__all__ = [
    "ComparisonSet",
    "ComparisonEntry",
    "best_price",
    "best_duration",
    "mark_best",
]
