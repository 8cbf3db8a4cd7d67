"""
Aggregates over flight lists: summary statistics, price bounds and the
per-option counts shown next to filter controls.

Which list each aggregate is computed over matters:

- ``compute_stats`` runs over the visible (post-filter) list.
- ``compute_price_bounds`` and ``compute_airline_facets`` run over the raw
  list, so selecting an airline never hides the other airline options.
- ``compute_stops_counts`` and ``compute_time_slot_counts`` run over the raw
  list by default. Pass ``cross_filter=True`` with the current filters to
  count only flights that pass every *other* active dimension instead.
"""

from __future__ import annotations

import math
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .filters import FilterState, matches
from .schema import Flight
from .types import (
    ALL_STOPS_BUCKETS,
    ALL_TIME_SLOTS,
    DEFAULT_PRICE_RANGE,
    StopsBucket,
    TimeSlot,
    time_slot_for_hour,
)


@dataclass(frozen=True)
class FlightStats:
    """
    Summary of the visible flights.

    All numeric fields are 0 when nothing is visible; callers must read that
    as "no data", not as a real zero price.
    """
    min_price: float
    max_price: float
    avg_price: int
    total_count: int
    visible_count: int

    @property
    def has_data(self) -> bool:
        return self.visible_count > 0

    def to_dict(self) -> Dict[str, float]:
        return {
            "min_price": self.min_price,
            "max_price": self.max_price,
            "avg_price": self.avg_price,
            "total_count": self.total_count,
            "visible_count": self.visible_count,
        }


@dataclass(frozen=True)
class AirlineFacet:
    """One airline option for the airline filter, with its flight count."""
    code: str
    name: str
    count: int
    logo: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {"code": self.code, "name": self.name, "logo": self.logo, "count": self.count}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_stats(
    visible_flights: Sequence[Flight],
    total_count: Optional[int] = None,
) -> FlightStats:
    """
    Compute price statistics over the visible flights.

    Args:
        visible_flights: Output of ``derive_visible``
        total_count: Size of the raw list; defaults to ``len(visible_flights)``

    Returns:
        FlightStats; every numeric field is 0 for an empty list
    """
    if total_count is None:
        total_count = len(visible_flights)
    if not visible_flights:
        return FlightStats(0, 0, 0, 0, 0)

    prices = [f.price.amount for f in visible_flights]
    return FlightStats(
        min_price=min(prices),
        max_price=max(prices),
        avg_price=_round_half_up(sum(prices) / len(prices)),
        total_count=total_count,
        visible_count=len(prices),
    )


def compute_price_bounds(raw_flights: Sequence[Flight]) -> Tuple[float, float]:
    """(min, max) price over the raw list, or ``DEFAULT_PRICE_RANGE`` if empty."""
    if not raw_flights:
        return DEFAULT_PRICE_RANGE
    prices = [f.price.amount for f in raw_flights]
    return (min(prices), max(prices))


def compute_airline_facets(raw_flights: Sequence[Flight]) -> List[AirlineFacet]:
    """
    One entry per distinct airline in the raw list, most flights first.

    Airlines with equal counts keep the order in which they first appear.
    """
    seen: "OrderedDict[str, List]" = OrderedDict()
    for flight in raw_flights:
        entry = seen.get(flight.airline.code)
        if entry is None:
            seen[flight.airline.code] = [flight.airline, 1]
        else:
            entry[1] += 1

    facets = [
        AirlineFacet(code=code, name=airline.name, logo=airline.logo, count=count)
        for code, (airline, count) in seen.items()
    ]
    return sorted(facets, key=lambda facet: -facet.count)


def _counting_base(
    flights: Sequence[Flight],
    filters: Optional[FilterState],
    cross_filter: bool,
    dimension: str,
) -> Sequence[Flight]:
    if not cross_filter or filters is None:
        return flights
    return [f for f in flights if matches(f, filters, exclude=dimension)]


def compute_stops_counts(
    flights: Sequence[Flight],
    filters: Optional[FilterState] = None,
    cross_filter: bool = False,
) -> Dict[StopsBucket, int]:
    """
    Number of flights per stops bucket ("2+" counts every flight with 2 or more).

    Args:
        flights: Raw flight list
        filters: Current filters, only used with ``cross_filter``
        cross_filter: Count only flights passing every other active filter
    """
    counts = {bucket: 0 for bucket in ALL_STOPS_BUCKETS}
    for flight in _counting_base(flights, filters, cross_filter, "stops"):
        counts[flight.stop_bucket] += 1
    return counts


def compute_time_slot_counts(
    flights: Sequence[Flight],
    filters: Optional[FilterState] = None,
    cross_filter: bool = False,
) -> Dict[TimeSlot, int]:
    """
    Number of flights departing in each time slot (local departure hour).

    Args:
        flights: Raw flight list
        filters: Current filters, only used with ``cross_filter``
        cross_filter: Count only flights passing every other active filter
    """
    counts = {slot: 0 for slot in ALL_TIME_SLOTS}
    for flight in _counting_base(flights, filters, cross_filter, "time_slots"):
        counts[time_slot_for_hour(flight.departure_hour)] += 1
    return counts


__all__ = [
    "FlightStats",
    "AirlineFacet",
    "compute_stats",
    "compute_price_bounds",
    "compute_airline_facets",
    "compute_stops_counts",
    "compute_time_slot_counts",
]
