"""
flight-finder: flight search results with filtering, sorting, stats and comparison.

This library turns a provider's flight offers into what a results screen
shows: the visible, ordered subset under the current filters, summary
statistics, per-option facet counts and a small side-by-side comparison.

Quick Start:
    >>> from flight_finder import FlightCollection, search_flights, toggle_stops
    >>> result = search_flights({
    ...     "origin": "MAD",
    ...     "destination": "BCN",
    ...     "departure_date": "2025-06-15"
    ... })
    >>> collection = FlightCollection()
    >>> collection.replace_flights(result.to_flights())
    >>> collection.update_filters(toggle_stops, "1")
    >>> collection.stats().avg_price

Pure functions:
    - derive_visible(): Filter and sort a flight list
    - compute_stats(): Min/max/average price over visible flights
    - compute_airline_facets(), compute_stops_counts(),
      compute_time_slot_counts(): Counts shown next to filter controls

Classes:
    - FlightCollection: Owns one search's flights, filters and comparison
    - FilterState: Immutable filter and sort configuration
    - ComparisonSet: Up to three flight ids, rejecting additions when full
    - FlightSearchResult: Search result with structured error handling
"""

__version__ = "1.0.0"

from .types import (
    SortKey,
    StopsBucket,
    TimeSlot,
    ToggleOutcome,
    FlightProvider,
    AirportDirectory,
    MAX_COMPARISON,
)
from .schema import (
    Airport,
    Airline,
    Price,
    FlightSegment,
    Flight,
    SearchParams,
    PriceDataPoint,
)
from .errors import (
    ErrorCode,
    FilterStateError,
    FlightSearchError,
    FlightAPIException,
)
from .config import FlightFinderConfig, get_config, configure, reset_config
from .filters import (
    ALL,
    AllOf,
    SubsetOf,
    FilterState,
    derive_visible,
    sort_flights,
    toggle_stops,
    toggle_time_slot,
    select_all_time_slots,
    toggle_airline,
    clear_airlines,
    set_price_range,
    set_price_min,
    set_price_max,
    set_sort,
    reset_filters,
)
from .aggregation import (
    FlightStats,
    AirlineFacet,
    compute_stats,
    compute_price_bounds,
    compute_airline_facets,
    compute_stops_counts,
    compute_time_slot_counts,
)
from .comparison import ComparisonSet, ComparisonEntry, mark_best
from .collection import FlightCollection
from .schema_v2 import FlightSchema, FlightSearchRequest, FlightSearchResult
from .search import search_flights
from .directory import InMemoryAirportDirectory, get_airport_directory
from .providers import MockFlightProvider, register_provider, get_flight_provider
from .history import SearchHistory, Favorites

__all__ = [
    "__version__",
    # Types
    "SortKey",
    "StopsBucket",
    "TimeSlot",
    "ToggleOutcome",
    "FlightProvider",
    "AirportDirectory",
    "MAX_COMPARISON",
    # Data model
    "Airport",
    "Airline",
    "Price",
    "FlightSegment",
    "Flight",
    "SearchParams",
    "PriceDataPoint",
    # Errors
    "ErrorCode",
    "FilterStateError",
    "FlightSearchError",
    "FlightAPIException",
    # Config
    "FlightFinderConfig",
    "get_config",
    "configure",
    "reset_config",
    # Filters
    "ALL",
    "AllOf",
    "SubsetOf",
    "FilterState",
    "derive_visible",
    "sort_flights",
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
    # Aggregation
    "FlightStats",
    "AirlineFacet",
    "compute_stats",
    "compute_price_bounds",
    "compute_airline_facets",
    "compute_stops_counts",
    "compute_time_slot_counts",
    # Comparison
    "ComparisonSet",
    "ComparisonEntry",
    "mark_best",
    "FlightCollection",
    # Search
    "FlightSchema",
    "FlightSearchRequest",
    "FlightSearchResult",
    "search_flights",
    "InMemoryAirportDirectory",
    "get_airport_directory",
    "MockFlightProvider",
    "register_provider",
    "get_flight_provider",
    "SearchHistory",
    "Favorites",
]
