"""
Flight search orchestration.

This module provides the single entry point that turns raw search input
into a ``FlightSearchResult``: validation, provider resolution, caching,
retries and the fallback to sample data.

Usage:
    >>> from flight_finder.search import search_flights
    >>> result = search_flights({
    ...     "origin": "MAD",
    ...     "destination": "BCN",
    ...     "departure_date": "2025-06-15",
    ... })
    >>> collection.replace_flights(result.to_flights())
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Tuple, Union

from pydantic import ValidationError

from .config import get_config
from .errors import (
    FALLBACK_ERROR_CODES,
    ErrorCode,
    FlightAPIException,
    FlightSearchError,
    invalid_airport_error,
    invalid_date_error,
    invalid_params_error,
)
from .mock_data import generate_mock_flights
from .providers import get_flight_provider
from .retry import retry_with_backoff
from .schema import Flight, SearchParams
from .schema_v2 import FlightSchema, FlightSearchRequest, FlightSearchResult
from .utils import validate_airport_code, validate_date

logger = logging.getLogger(__name__)

FALLBACK_WARNING = "Real-time results temporarily unavailable. Showing sample data."
NO_RESULTS_MESSAGE = "No flights found for your search criteria. Try different dates or airports."


# ============================================================================
# Cache
# ============================================================================

@dataclass(frozen=True)
class CacheEntry:
    flights: Tuple[Flight, ...]
    source: str
    stored_at: float


class SearchCache:
    """
    In-memory search cache with a TTL and a size cap.

    When full, the oldest entry is evicted. Thread-safe.

    Attributes:
        ttl_seconds: How long an entry stays valid
        max_entries: Maximum number of entries kept
    """

    def __init__(
        self,
        ttl_seconds: Optional[int] = None,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        config = get_config()
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else config.cache_ttl_seconds
        self.max_entries = max_entries if max_entries is not None else config.cache_max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return a fresh entry, dropping it if it has expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.stored_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return entry

    def set(self, key: str, flights: List[Flight], source: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
            while len(self._entries) >= self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Search cache full; evicted {evicted}")
            self._entries[key] = CacheEntry(tuple(flights), source, self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries


# Global cache instance
_cache: Optional[SearchCache] = None


def get_search_cache() -> SearchCache:
    global _cache
    if _cache is None:
        _cache = SearchCache()
    return _cache


def reset_search_cache() -> None:
    """Drop the global cache; the next search rebuilds it from config."""
    global _cache
    _cache = None


# ============================================================================
# Validation
# ============================================================================

_DATE_FIELDS = ("departure_date", "return_date")
_AIRPORT_FIELDS = ("origin", "destination")


def _error_from_validation(e: ValidationError) -> FlightSearchError:
    problems = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in e.errors()
    ]
    fields = [p["field"] for p in problems]

    if any(err["type"] == "missing" for err in e.errors()):
        error = invalid_params_error(
            "Missing required parameters",
            "origin, destination and departure_date are required",
        )
    elif fields and all(f in _DATE_FIELDS for f in fields):
        error = invalid_date_error(str(e.errors()[0].get("input")), "Use YYYY-MM-DD format")
    elif fields and all(f in _AIRPORT_FIELDS for f in fields):
        error = FlightSearchError(
            code=ErrorCode.INVALID_AIRPORT,
            message="Invalid airport codes",
            suggested_action="Airport codes must be 3-letter IATA codes (e.g., MAD, BCN)",
        )
    else:
        error = invalid_params_error("Invalid search parameters", problems[0]["message"])
    return error.model_copy(update={"details": {"errors": problems}})


def validate_search_params(
    request: Union[FlightSearchRequest, dict],
    today: Optional[date] = None,
) -> Tuple[FlightSearchRequest, SearchParams]:
    """
    Validate raw search input.

    Args:
        request: A FlightSearchRequest or a dict with the same fields
        today: Reference date for the "not in the past" rule (default: today)

    Returns:
        The validated request and the SearchParams built from it

    Raises:
        FlightAPIException: INVALID_PARAMS, INVALID_AIRPORT or INVALID_DATE
    """
    if isinstance(request, dict):
        try:
            request = FlightSearchRequest(**request)
        except ValidationError as e:
            raise FlightAPIException(_error_from_validation(e)) from e

    for field_name in _AIRPORT_FIELDS:
        value = getattr(request, field_name)
        try:
            validate_airport_code(value)
        except ValueError as e:
            raise FlightAPIException(invalid_airport_error(value, field_name)) from e

    today = today or date.today()
    try:
        departure = validate_date(request.departure_date, not_before=today)
    except ValueError as e:
        raise FlightAPIException(invalid_date_error(request.departure_date, str(e))) from e

    if request.return_date:
        try:
            validate_date(request.return_date, not_before=departure)
        except ValueError as e:
            raise FlightAPIException(invalid_date_error(request.return_date, str(e))) from e

    params = request.to_search_params()
    if params.origin == params.destination:
        raise FlightAPIException(invalid_params_error(
            "Origin and destination must differ",
            "Choose two different airports",
        ))
    return request, params


# ============================================================================
# Search
# ============================================================================

def _success(
    flights: List[Flight],
    source: str,
    cached: bool = False,
    warning: Optional[str] = None,
) -> FlightSearchResult:
    return FlightSearchResult(
        success=True,
        flights=[FlightSchema.from_flight(f) for f in flights],
        source=source,
        cached=cached,
        warning=warning,
        message=None if flights else NO_RESULTS_MESSAGE,
    )


def _fallback(params: SearchParams, error: FlightSearchError) -> FlightSearchResult:
    logger.warning(f"Provider failed with {error.code.value}: {error.message}; falling back to sample data")
    return _success(generate_mock_flights(params), "mock", warning=FALLBACK_WARNING)


def search_flights(
    request: Union[FlightSearchRequest, dict],
    *,
    use_cache: bool = True,
    today: Optional[date] = None,
) -> FlightSearchResult:
    """
    Search flights for a route and date.

    Accepts either a FlightSearchRequest model or a dictionary.

    Args:
        request: Flight search parameters
        use_cache: Serve from and store into the search cache
        today: Reference date for date validation (default: today)

    Returns:
        FlightSearchResult with:
            - success: False only for invalid input or an unrecoverable provider error
            - flights: Offers in provider order (empty on failure)
            - source: Provider that produced the offers
            - cached: Whether the offers came from the cache
            - warning: Set when sample data replaced a failing provider
            - error: Structured error when success is False

    Note:
        This function never raises exceptions. Credential, rate-limit and
        network failures are answered with sample data and a warning;
        other failures are reported through ``error``.
    """
    try:
        request, params = validate_search_params(request, today=today)
    except FlightAPIException as e:
        logger.info(f"Invalid search request: {e.error.message}")
        return FlightSearchResult(success=False, error=e.error)

    cache = get_search_cache()
    key = params.cache_key
    if use_cache:
        entry = cache.get(key)
        if entry is not None:
            logger.debug(f"Search cache hit for {key}")
            return _success(list(entry.flights), entry.source, cached=True)

    provider, warning = get_flight_provider(request.provider)
    search = retry_with_backoff()(provider.search)

    try:
        flights = search(params)
    except FlightAPIException as e:
        if e.code in FALLBACK_ERROR_CODES:
            return _fallback(params, e.error)
        logger.warning(f"Flight search failed: {e.error.message}")
        return FlightSearchResult(success=False, source=provider.provider_name, error=e.error)
    except Exception as e:
        error = FlightSearchError.from_exception(e)
        if error.code in FALLBACK_ERROR_CODES:
            return _fallback(params, error)
        logger.error(f"Unexpected flight search error: {e}", exc_info=True)
        return FlightSearchResult(success=False, source=provider.provider_name, error=error)

    logger.info(f"{provider.provider_name} returned {len(flights)} flights for {key}")
    if use_cache and flights:
        cache.set(key, flights, provider.provider_name)
    return _success(flights, provider.provider_name, warning=warning)


__all__ = [
    "CacheEntry",
    "SearchCache",
    "get_search_cache",
    "reset_search_cache",
    "validate_search_params",
    "search_flights",
]
