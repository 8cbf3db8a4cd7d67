"""
Owner of one search's state.

``FlightCollection`` holds the raw flight list together with its filters,
comparison set, booking selection and error as a single immutable
snapshot. Every write builds a new snapshot and swaps it in under a lock,
so a reader never sees a new flight list paired with stale filters or
comparison ids. Every read re-derives from the snapshot; nothing filtered
is cached.

Usage:
    >>> collection = FlightCollection()
    >>> collection.replace_flights(flights)
    >>> collection.update_filters(toggle_stops, 0)
    >>> collection.visible()
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .aggregation import (
    AirlineFacet,
    FlightStats,
    compute_airline_facets,
    compute_price_bounds,
    compute_stats,
    compute_stops_counts,
    compute_time_slot_counts,
)
from .comparison import ComparisonEntry, ComparisonSet, mark_best
from .config import get_config
from .filters import FilterState, derive_visible, reset_filters
from .schema import Flight, SearchParams
from .types import StopsBucket, TimeSlot, ToggleOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollectionSnapshot:
    """Everything a reader needs, captured at one instant."""
    flights: Tuple[Flight, ...] = ()
    filters: FilterState = field(default_factory=FilterState)
    comparison: ComparisonSet = field(default_factory=ComparisonSet)
    selected_flight_id: Optional[str] = None
    error: Optional[str] = None
    search_params: Optional[SearchParams] = None

    @property
    def price_bounds(self) -> Tuple[float, float]:
        return compute_price_bounds(self.flights)

    @property
    def selected_flight(self) -> Optional[Flight]:
        if self.selected_flight_id is None:
            return None
        return next((f for f in self.flights if f.id == self.selected_flight_id), None)


class FlightCollection:
    """
    Flight list, filters and comparison set for the active search.

    Thread-safe: writes are serialized and replace the whole snapshot.

    Attributes:
        max_comparison: Capacity of the comparison set
    """

    def __init__(self, max_comparison: Optional[int] = None):
        self.max_comparison = max_comparison if max_comparison is not None else get_config().max_comparison
        self._lock = threading.Lock()
        self._snapshot = self._empty_snapshot()

    def _empty_snapshot(self) -> CollectionSnapshot:
        return CollectionSnapshot(comparison=ComparisonSet(capacity=self.max_comparison))

    def _write(self, change: Callable[[CollectionSnapshot], CollectionSnapshot]) -> CollectionSnapshot:
        with self._lock:
            self._snapshot = change(self._snapshot)
            return self._snapshot

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    def snapshot(self) -> CollectionSnapshot:
        return self._snapshot

    @property
    def flights(self) -> Tuple[Flight, ...]:
        return self._snapshot.flights

    @property
    def filters(self) -> FilterState:
        return self._snapshot.filters

    @property
    def comparison_ids(self) -> Tuple[str, ...]:
        return self._snapshot.comparison.ids

    @property
    def error(self) -> Optional[str]:
        return self._snapshot.error

    @property
    def search_params(self) -> Optional[SearchParams]:
        return self._snapshot.search_params

    @property
    def selected_flight(self) -> Optional[Flight]:
        return self._snapshot.selected_flight

    # ------------------------------------------------------------------
    # Flight list lifecycle
    # ------------------------------------------------------------------

    def replace_flights(
        self,
        flights: Sequence[Flight],
        search_params: Optional[SearchParams] = None,
    ) -> CollectionSnapshot:
        """
        Install the result of a new search.

        Filters are reset to the new price bounds; the comparison set and the
        booking selection are cleared, since they refer to the old list.
        """
        new_flights = tuple(flights)
        bounds = compute_price_bounds(new_flights)
        logger.debug(f"Replacing flight list with {len(new_flights)} flights, price bounds {bounds}")
        return self._write(lambda current: CollectionSnapshot(
            flights=new_flights,
            filters=reset_filters(bounds),
            comparison=current.comparison.clear(),
            search_params=search_params if search_params is not None else current.search_params,
        ))

    def fail(self, error: str, search_params: Optional[SearchParams] = None) -> CollectionSnapshot:
        """Record a failed search: zero flights plus an error message."""
        logger.debug(f"Search failed: {error}")
        return self._write(lambda current: CollectionSnapshot(
            filters=reset_filters(compute_price_bounds(())),
            comparison=current.comparison.clear(),
            error=error,
            search_params=search_params if search_params is not None else current.search_params,
        ))

    def reset_all(self) -> CollectionSnapshot:
        return self._write(lambda current: self._empty_snapshot())

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def update_filters(self, reducer: Callable[..., FilterState], *args: Any, **kwargs: Any) -> FilterState:
        """
        Apply a reducer from ``flight_finder.filters`` to the current filters.

        Example:
            >>> collection.update_filters(toggle_airline, "LH")
            >>> collection.update_filters(set_sort, "duration")
        """
        snapshot = self._write(
            lambda current: replace(current, filters=reducer(current.filters, *args, **kwargs))
        )
        return snapshot.filters

    def set_filters(self, filters: FilterState) -> FilterState:
        return self._write(lambda current: replace(current, filters=filters)).filters

    def reset_filters(self) -> FilterState:
        snapshot = self._write(
            lambda current: replace(current, filters=reset_filters(current.price_bounds))
        )
        return snapshot.filters

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def visible(self) -> List[Flight]:
        snapshot = self._snapshot
        return derive_visible(snapshot.flights, snapshot.filters)

    def stats(self) -> FlightStats:
        snapshot = self._snapshot
        return compute_stats(derive_visible(snapshot.flights, snapshot.filters), len(snapshot.flights))

    def price_bounds(self) -> Tuple[float, float]:
        return self._snapshot.price_bounds

    def airline_facets(self) -> List[AirlineFacet]:
        return compute_airline_facets(self._snapshot.flights)

    def stops_counts(self, cross_filter: bool = False) -> Dict[StopsBucket, int]:
        snapshot = self._snapshot
        return compute_stops_counts(snapshot.flights, snapshot.filters, cross_filter)

    def time_slot_counts(self, cross_filter: bool = False) -> Dict[TimeSlot, int]:
        snapshot = self._snapshot
        return compute_time_slot_counts(snapshot.flights, snapshot.filters, cross_filter)

    def active_filter_count(self) -> int:
        snapshot = self._snapshot
        return snapshot.filters.active_filter_count(snapshot.price_bounds)

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def toggle_comparison(self, flight_id: str) -> ToggleOutcome:
        outcome: List[ToggleOutcome] = []

        def change(current: CollectionSnapshot) -> CollectionSnapshot:
            comparison, result = current.comparison.toggle(flight_id)
            outcome.append(result)
            return replace(current, comparison=comparison)

        self._write(change)
        return outcome[0]

    def is_in_comparison(self, flight_id: str) -> bool:
        return flight_id in self._snapshot.comparison

    def comparison_flights(self) -> List[Flight]:
        snapshot = self._snapshot
        return snapshot.comparison.resolve(snapshot.flights)

    def comparison_entries(self) -> List[ComparisonEntry]:
        return mark_best(self.comparison_flights())

    def clear_comparison(self) -> None:
        self._write(lambda current: replace(current, comparison=current.comparison.clear()))

    # ------------------------------------------------------------------
    # Booking selection
    # ------------------------------------------------------------------

    def select_flight(self, flight_id: str) -> bool:
        """
        Mark a flight as the one being booked.

        Returns:
            False (and leaves the selection unchanged) if the id is unknown
        """
        selected: List[bool] = []

        def change(current: CollectionSnapshot) -> CollectionSnapshot:
            if not any(f.id == flight_id for f in current.flights):
                selected.append(False)
                return current
            selected.append(True)
            return replace(current, selected_flight_id=flight_id)

        self._write(change)
        if not selected[0]:
            logger.debug(f"Ignoring selection of unknown flight {flight_id}")
        return selected[0]

    def clear_selection(self) -> None:
        self._write(lambda current: replace(current, selected_flight_id=None))


__all__ = [
    "CollectionSnapshot",
    "FlightCollection",
]
