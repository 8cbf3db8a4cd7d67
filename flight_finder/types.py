"""
Shared type definitions for flight-finder.

This module provides centralized enums, type aliases and collaborator
protocols used across the codebase, ensuring consistency between the
derivation core, the search layer and the HTTP surface.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Literal, Optional, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    from .schema import Airport, Flight, SearchParams


# ============================================================================
# Type Aliases
# ============================================================================

CabinClass = Literal["economy", "business", "first"]
"""Cabin class options for flight search."""

TripType = Literal["one-way", "round-trip"]
"""Trip type derived from the presence of a return date."""

ProviderType = Literal["serpapi", "amadeus", "mock"]
"""
Upstream provider used to fetch flight offers.

- "serpapi": SerpApi Google Flights adapter (requires API key)
- "amadeus": Amadeus self-service adapter (requires key and secret)
- "mock": Deterministic sample data, no network access
"""

# ============================================================================
# Enums
# ============================================================================

class SortKey(str, Enum):
    """Single active ordering of the visible flight list (always ascending)."""
    PRICE = "price"
    DURATION = "duration"
    DEPARTURE = "departure"


class StopsBucket(str, Enum):
    """Stop-count buckets offered by the stops filter."""
    NONSTOP = "0"
    ONE_STOP = "1"
    TWO_PLUS = "2+"

    @classmethod
    def for_stops(cls, stops: int) -> "StopsBucket":
        """Bucket a raw stop count (anything >= 2 lands in TWO_PLUS)."""
        if stops <= 0:
            return cls.NONSTOP
        if stops == 1:
            return cls.ONE_STOP
        return cls.TWO_PLUS

    @classmethod
    def coerce(cls, value: Union["StopsBucket", str, int]) -> "StopsBucket":
        """
        Accept the enum, its string value, or an integer.

        The integer 2 means "2+", mirroring how filter widgets encode it.

        Raises:
            ValueError: If the value names no bucket
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid stops bucket: {value!r}")
        if isinstance(value, int):
            if value < 0 or value > 2:
                raise ValueError(f"Invalid stops bucket: {value}")
            return cls.for_stops(value)
        text = str(value).strip()
        if text == "2":
            return cls.TWO_PLUS
        return cls(text)


class TimeSlot(str, Enum):
    """Departure-time buckets, each a half-open hour range."""
    EARLY = "early"
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


@dataclass(frozen=True)
class TimeSlotRange:
    """Half-open [start, end) hour range for a departure-time slot."""
    start: int
    end: int
    label: str
    description: str

    def contains(self, hour: int) -> bool:
        return self.start <= hour < self.end


class ToggleOutcome(str, Enum):
    """Tagged result of a comparison-set toggle."""
    ADDED = "added"
    REMOVED = "removed"
    REJECTED_AT_CAPACITY = "rejected_at_capacity"


# ============================================================================
# Constants
# ============================================================================

TIME_SLOT_RANGES: Dict[TimeSlot, TimeSlotRange] = {
    TimeSlot.EARLY: TimeSlotRange(0, 6, "Early", "00:00 - 06:00"),
    TimeSlot.MORNING: TimeSlotRange(6, 12, "Morning", "06:00 - 12:00"),
    TimeSlot.AFTERNOON: TimeSlotRange(12, 18, "Afternoon", "12:00 - 18:00"),
    TimeSlot.EVENING: TimeSlotRange(18, 24, "Evening", "18:00 - 24:00"),
}
"""Hour ranges for each departure-time slot."""

ALL_TIME_SLOTS: tuple[TimeSlot, ...] = tuple(TimeSlot)
"""All departure-time slots in display order."""

ALL_STOPS_BUCKETS: tuple[StopsBucket, ...] = tuple(StopsBucket)
"""All stops buckets in display order."""

DEFAULT_PRICE_RANGE: tuple[float, float] = (0, 2000)
"""Price bounds used when there are no flights to derive them from."""

MAX_COMPARISON = 3
"""Default capacity of the comparison set."""


def time_slot_for_hour(hour: int) -> TimeSlot:
    """Return the slot whose range contains ``hour`` (0-23)."""
    for slot, slot_range in TIME_SLOT_RANGES.items():
        if slot_range.contains(hour):
            return slot
    raise ValueError(f"Hour out of range: {hour}")


# ============================================================================
# Protocols (Interfaces)
# ============================================================================

@runtime_checkable
class FlightProvider(Protocol):
    """Upstream source of flight offers for a search."""

    @property
    def provider_name(self) -> str:
        """Unique identifier for this provider."""
        ...

    def is_configured(self) -> bool:
        """Whether the provider has what it needs to make calls."""
        ...

    def search(self, params: "SearchParams") -> List["Flight"]:
        """
        Fetch flight offers.

        Raises:
            FlightAPIException: With a structured error on failure
        """
        ...


@runtime_checkable
class AirportDirectory(Protocol):
    """Airport lookup used for autocomplete and history labels."""

    def search(
        self,
        query: str,
        exclude_code: Optional[str] = None,
        limit: int = 10,
    ) -> List["Airport"]:
        ...

    def by_code(self, code: str) -> Optional["Airport"]:
        ...


__all__ = [
    # Type aliases
    "CabinClass",
    "TripType",
    "ProviderType",
    # Enums
    "SortKey",
    "StopsBucket",
    "TimeSlot",
    "TimeSlotRange",
    "ToggleOutcome",
    # Protocols
    "FlightProvider",
    "AirportDirectory",
    # Constants
    "TIME_SLOT_RANGES",
    "ALL_TIME_SLOTS",
    "ALL_STOPS_BUCKETS",
    "DEFAULT_PRICE_RANGE",
    "MAX_COMPARISON",
    "time_slot_for_hour",
]
