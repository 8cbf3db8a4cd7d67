"""
Filtering and sorting of flight offers.

Filter configuration is an immutable ``FilterState``; every change goes
through a pure reducer that returns a new state. ``derive_visible`` turns
(flights, filters) into the ordered list to display and is safe to call as
often as needed: it never mutates its input and never raises.

Each non-price dimension is a facet, either ``AllOf`` (unrestricted) or
``SubsetOf(values)`` (a non-empty selection). Representing "unrestricted"
explicitly keeps the airline facet, where an empty selection means
"show all", from being confused with the stops and time-slot facets,
which must always keep at least one selection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import (
    Any,
    Callable,
    FrozenSet,
    Generic,
    Hashable,
    Iterable,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

from .errors import FilterStateError
from .schema import Flight
from .types import (
    ALL_STOPS_BUCKETS,
    ALL_TIME_SLOTS,
    DEFAULT_PRICE_RANGE,
    TIME_SLOT_RANGES,
    SortKey,
    StopsBucket,
    TimeSlot,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Hashable)

# Minimum distance between the two price slider handles
PRICE_HANDLE_GAP = 10


# ============================================================================
# Facets
# ============================================================================

@dataclass(frozen=True)
class AllOf:
    """Unrestricted facet: every value passes."""

    def accepts(self, value: Any) -> bool:
        return True

    @property
    def is_restricted(self) -> bool:
        return False


@dataclass(frozen=True)
class SubsetOf(Generic[T]):
    """Restricted facet: only the listed values pass. Never empty."""
    values: FrozenSet[T] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not self.values:
            raise FilterStateError("A facet selection cannot be empty")

    def accepts(self, value: Any) -> bool:
        return value in self.values

    @property
    def is_restricted(self) -> bool:
        return True


Facet = Union[AllOf, SubsetOf]

ALL = AllOf()


def _closed_facet(values: Iterable[T], universe: Sequence[T], name: str) -> Facet:
    selected = frozenset(values)
    if not selected:
        raise FilterStateError(f"At least one {name} option must be selected")
    unknown = selected.difference(universe)
    if unknown:
        raise FilterStateError(f"Unknown {name} option(s): {sorted(map(str, unknown))}")
    if selected == frozenset(universe):
        return ALL
    return SubsetOf(selected)


def stops_facet(values: Iterable[Union[StopsBucket, str, int]]) -> Facet:
    """
    Build the stops facet from a selection.

    Selecting every bucket yields ``AllOf``.

    Raises:
        FilterStateError: If the selection is empty or names an unknown bucket
    """
    try:
        buckets = [StopsBucket.coerce(v) for v in values]
    except ValueError as e:
        raise FilterStateError(str(e)) from e
    return _closed_facet(buckets, ALL_STOPS_BUCKETS, "stops")


def time_slot_facet(values: Iterable[Union[TimeSlot, str]]) -> Facet:
    """
    Build the departure-time facet from a selection.

    Selecting every slot yields ``AllOf``.

    Raises:
        FilterStateError: If the selection is empty or names an unknown slot
    """
    try:
        slots = [TimeSlot(v) for v in values]
    except ValueError as e:
        raise FilterStateError(str(e)) from e
    return _closed_facet(slots, ALL_TIME_SLOTS, "departure time")


def airline_facet(codes: Iterable[str]) -> Facet:
    """Build the airline facet. An empty selection means "all airlines"."""
    selected = frozenset(code.upper() for code in codes)
    if not selected:
        return ALL
    return SubsetOf(selected)


def facet_values(facet: Facet, universe: Sequence[T]) -> List[T]:
    """List the selected values of a closed facet in universe order."""
    return [value for value in universe if facet.accepts(value)]


# ============================================================================
# Filter State
# ============================================================================

@dataclass(frozen=True)
class FilterState:
    """
    Filter and sort configuration for one search.

    Attributes:
        stops: Accepted stop buckets
        price_range: Inclusive (min, max) price bounds
        airlines: Accepted airline codes
        time_slots: Accepted departure-time slots
        sort_by: The single active sort key
    """
    stops: Facet = ALL
    price_range: Tuple[float, float] = DEFAULT_PRICE_RANGE
    airlines: Facet = ALL
    time_slots: Facet = ALL
    sort_by: SortKey = SortKey.PRICE

    @classmethod
    def default(cls, price_bounds: Optional[Tuple[float, float]] = None) -> "FilterState":
        """All-inclusive filters with the price range set to ``price_bounds``."""
        return cls(price_range=tuple(price_bounds) if price_bounds else DEFAULT_PRICE_RANGE)

    @classmethod
    def from_selections(
        cls,
        stops: Optional[Iterable[Union[StopsBucket, str, int]]] = None,
        price_range: Optional[Sequence[float]] = None,
        airlines: Optional[Iterable[str]] = None,
        time_slots: Optional[Iterable[Union[TimeSlot, str]]] = None,
        sort_by: Union[SortKey, str] = SortKey.PRICE,
    ) -> "FilterState":
        """
        Build a state from plain selections (API payloads, URLs).

        ``None`` means "unrestricted" for every facet. An empty ``airlines``
        list also means unrestricted; an empty ``stops`` or ``time_slots``
        list is a data error.

        Raises:
            FilterStateError: For empty or unknown stops/time-slot selections,
                a malformed price range or an unknown sort key
        """
        if price_range is None:
            bounds = DEFAULT_PRICE_RANGE
        else:
            if len(price_range) != 2:
                raise FilterStateError("price_range must have exactly two values")
            bounds = _ordered(price_range[0], price_range[1])
        try:
            sort_key = SortKey(sort_by)
        except ValueError as e:
            raise FilterStateError(str(e)) from e
        return cls(
            stops=ALL if stops is None else stops_facet(stops),
            price_range=bounds,
            airlines=ALL if airlines is None else airline_facet(airlines),
            time_slots=ALL if time_slots is None else time_slot_facet(time_slots),
            sort_by=sort_key,
        )

    def active_filter_count(self, price_bounds: Optional[Tuple[float, float]] = None) -> int:
        """
        Number of dimensions currently narrowing the result.

        The price dimension counts only when ``price_bounds`` is given and the
        selected range is narrower than it.
        """
        count = sum(
            1 for facet in (self.stops, self.airlines, self.time_slots) if facet.is_restricted
        )
        if price_bounds is not None:
            low, high = price_bounds
            if self.price_range[0] > low or self.price_range[1] < high:
                count += 1
        return count

    def to_dict(self) -> dict:
        return {
            "stops": [b.value for b in facet_values(self.stops, ALL_STOPS_BUCKETS)],
            "price_range": list(self.price_range),
            "airlines": sorted(self.airlines.values) if isinstance(self.airlines, SubsetOf) else [],
            "time_slots": [s.value for s in facet_values(self.time_slots, ALL_TIME_SLOTS)],
            "sort_by": self.sort_by.value,
        }


def _ordered(low: float, high: float) -> Tuple[float, float]:
    return (low, high) if low <= high else (high, low)


# ============================================================================
# Reducers
# ============================================================================

Reducer = Callable[..., FilterState]


def _toggle_closed(facet: Facet, value: T, universe: Sequence[T]) -> Optional[Facet]:
    selected = set(facet_values(facet, universe))
    if value in selected:
        if len(selected) == 1:
            return None
        selected.discard(value)
    else:
        selected.add(value)
    return ALL if len(selected) == len(universe) else SubsetOf(frozenset(selected))


def toggle_stops(state: FilterState, bucket: Union[StopsBucket, str, int]) -> FilterState:
    """
    Add or remove a stops bucket.

    Removing the last selected bucket is rejected and returns ``state``
    unchanged.
    """
    bucket = StopsBucket.coerce(bucket)
    facet = _toggle_closed(state.stops, bucket, ALL_STOPS_BUCKETS)
    if facet is None:
        logger.debug(f"Rejected removing last stops option {bucket.value}")
        return state
    return replace(state, stops=facet)


def toggle_time_slot(state: FilterState, slot: Union[TimeSlot, str]) -> FilterState:
    """
    Add or remove a departure-time slot.

    Removing the last selected slot is rejected and returns ``state``
    unchanged.
    """
    slot = TimeSlot(slot)
    facet = _toggle_closed(state.time_slots, slot, ALL_TIME_SLOTS)
    if facet is None:
        logger.debug(f"Rejected removing last departure time slot {slot.value}")
        return state
    return replace(state, time_slots=facet)


def select_all_time_slots(state: FilterState) -> FilterState:
    return replace(state, time_slots=ALL)


def toggle_airline(state: FilterState, code: str) -> FilterState:
    """
    Add or remove an airline code.

    From the unrestricted state, toggling a code narrows the filter to that
    single airline. Removing the last code returns to unrestricted.
    """
    code = code.upper()
    if isinstance(state.airlines, SubsetOf):
        selected = set(state.airlines.values)
    else:
        selected = set()
    if code in selected:
        selected.discard(code)
    else:
        selected.add(code)
    return replace(state, airlines=airline_facet(selected))


def clear_airlines(state: FilterState) -> FilterState:
    return replace(state, airlines=ALL)


def set_price_range(state: FilterState, low: float, high: float) -> FilterState:
    """Set both price bounds; reversed bounds are swapped."""
    return replace(state, price_range=_ordered(low, high))


def set_price_min(state: FilterState, value: float, gap: float = PRICE_HANDLE_GAP) -> FilterState:
    """Move the lower slider handle, keeping it ``gap`` below the upper one."""
    high = state.price_range[1]
    return replace(state, price_range=(min(value, high - gap), high))


def set_price_max(state: FilterState, value: float, gap: float = PRICE_HANDLE_GAP) -> FilterState:
    """Move the upper slider handle, keeping it ``gap`` above the lower one."""
    low = state.price_range[0]
    return replace(state, price_range=(low, max(value, low + gap)))


def set_sort(state: FilterState, sort_by: Union[SortKey, str]) -> FilterState:
    return replace(state, sort_by=SortKey(sort_by))


def reset_filters(price_bounds: Optional[Tuple[float, float]] = None) -> FilterState:
    """Fresh all-inclusive filters for the given price bounds."""
    return FilterState.default(price_bounds)


# ============================================================================
# Predicates
# ============================================================================

def matches_stops(flight: Flight, filters: FilterState) -> bool:
    return filters.stops.accepts(flight.stop_bucket)


def matches_price(flight: Flight, filters: FilterState) -> bool:
    low, high = filters.price_range
    return low <= flight.price.amount <= high


def matches_airline(flight: Flight, filters: FilterState) -> bool:
    return filters.airlines.accepts(flight.airline.code.upper())


def matches_time_slot(flight: Flight, filters: FilterState) -> bool:
    if not filters.time_slots.is_restricted:
        return True
    hour = flight.departure_hour
    return any(
        TIME_SLOT_RANGES[slot].contains(hour)
        for slot in facet_values(filters.time_slots, ALL_TIME_SLOTS)
    )


FilterDimension = Callable[[Flight, FilterState], bool]

DIMENSIONS: dict = {
    "stops": matches_stops,
    "price": matches_price,
    "airlines": matches_airline,
    "time_slots": matches_time_slot,
}
"""Every filter dimension, keyed by name. Applied as a conjunction."""


def matches(
    flight: Flight,
    filters: FilterState,
    exclude: Optional[str] = None,
) -> bool:
    """
    Whether a flight passes every filter dimension.

    Args:
        flight: The flight to test
        filters: Current filter configuration
        exclude: Name of a dimension to skip (used for cross-filtered counts)
    """
    return all(
        predicate(flight, filters)
        for name, predicate in DIMENSIONS.items()
        if name != exclude
    )


# ============================================================================
# Sorting and Derivation
# ============================================================================

SORT_KEYS: dict = {
    SortKey.PRICE: lambda f: f.price.amount,
    SortKey.DURATION: lambda f: f.duration,
    SortKey.DEPARTURE: lambda f: f.departure_time,
}


def sort_flights(flights: Iterable[Flight], sort_by: Union[SortKey, str]) -> List[Flight]:
    """Stable ascending sort; ties keep their input order."""
    return sorted(flights, key=SORT_KEYS[SortKey(sort_by)])


def derive_visible(flights: Sequence[Flight], filters: FilterState) -> List[Flight]:
    """
    Derive the visible, ordered subset of ``flights``.

    Filters are applied as a conjunction over stops, price, airline and
    departure-time slot, then exactly one stable sort by ``filters.sort_by``.

    Args:
        flights: Raw flight list in provider order (not modified)
        filters: Current filter configuration

    Returns:
        A new list; empty when nothing passes
    """
    return sort_flights((f for f in flights if matches(f, filters)), filters.sort_by)


__all__ = [
    # Facets
    "AllOf",
    "SubsetOf",
    "Facet",
    "ALL",
    "stops_facet",
    "time_slot_facet",
    "airline_facet",
    "facet_values",
    # State
    "FilterState",
    "PRICE_HANDLE_GAP",
    # Reducers
    "toggle_stops",
    "toggle_time_slot",
    "select_all_time_slots",
    "toggle_airline",
    "clear_airlines",
    "set_price_range",
    "set_price_min",
    "set_price_max",
    "set_sort",
    "reset_filters",
    # Predicates
    "matches_stops",
    "matches_price",
    "matches_airline",
    "matches_time_slot",
    "matches",
    "DIMENSIONS",
    # Derivation
    "sort_flights",
    "derive_visible",
]
