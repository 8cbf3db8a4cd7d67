"""
FastAPI HTTP Server for flight-finder.

Provides a REST API for flight search, airport lookup, result derivation
(filters, sorting, stats, facet counts), flight comparison and a sample
price calendar.

Run with:
    uvicorn flight_finder.http_api:app --reload

Or using the CLI:
    flight-finder-api

Environment Variables:
    FLIGHT_FINDER_API_KEY: API key for authentication (optional)
    FLIGHT_FINDER_RATE_LIMIT_REQUESTS: Requests per window (default: 60)
    FLIGHT_FINDER_CORS_ORIGINS: JSON list of CORS origins (default: ["*"])
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from pydantic import BaseModel

from . import __version__
from .collection import FlightCollection
from .config import get_config
from .directory import get_airport_directory
from .errors import ErrorCode, FilterStateError, FlightAPIException, FlightSearchError
from .mock_data import generate_price_graph_data
from .rate_limit import get_rate_limiter
from .schema_v2 import (
    AirlineFacetSchema,
    ComparisonEntrySchema,
    CompareRequest,
    CompareResponse,
    DeriveRequest,
    DeriveResponse,
    FilterStateSchema,
    FlightSchema,
    FlightStatsSchema,
)
from .search import search_flights
from .aggregation import compute_price_bounds
from .utils import validate_date

logger = logging.getLogger(__name__)

# Error codes answered with 4xx; everything else is a provider failure (503)
STATUS_BY_CODE = {
    ErrorCode.INVALID_PARAMS: 400,
    ErrorCode.INVALID_AIRPORT: 400,
    ErrorCode.INVALID_DATE: 400,
    ErrorCode.INVALID_FILTERS: 422,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.RATE_LIMITED: 429,
}


def status_for(error: FlightSearchError) -> int:
    return STATUS_BY_CODE.get(error.code, 503)


def error_body(error: FlightSearchError) -> dict:
    return {
        "error": error.message,
        "code": error.code.value,
        "details": error.details,
        "retryable": error.retryable,
        "suggested_action": error.suggested_action,
    }


# ============================================================================
# Response Models
# ============================================================================

class HealthResponse(BaseModel):
    """Liveness payload with the enabled feature flags."""
    status: str = "healthy"
    version: str = __version__
    timestamp: str
    features: dict


# ============================================================================
# FastAPI Application
# ============================================================================

app = FastAPI(
    title="Flight Finder API",
    description="""
**Flight Finder API** - flight search with client-side style result derivation.

## Features

- **Flight Search** - Offers for a route and date, with sample-data fallback
- **Airport Lookup** - Autocomplete by code, city, name or country
- **Derivation** - Filters, sorting, stats and facet counts over a result set
- **Comparison** - Up to three flights side by side with best price/duration
- **Price Calendar** - Sample cheapest-price-per-day series

## Authentication

Set the `X-API-Key` header if authentication is enabled.
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


# ============================================================================
# Dependencies
# ============================================================================

async def verify_api_key(api_key: Optional[str] = Security(api_key_header)) -> Optional[str]:
    """Require ``X-API-Key`` when ``FLIGHT_FINDER_API_KEY`` is set; re-read per request."""
    expected = get_config().api_key
    if not expected:
        return None

    if not api_key:
        raise HTTPException(
            status_code=401,
            detail="API key required. Set X-API-Key header."
        )

    if api_key != expected:
        raise HTTPException(
            status_code=403,
            detail="Invalid API key"
        )

    return api_key


async def check_rate_limit(request: Request) -> None:
    """Count the call against the client address; 429 with Retry-After when over."""
    client_ip = request.client.host if request.client else "unknown"
    decision = get_rate_limiter().check(client_ip)

    if not decision.allowed:
        wait = int(decision.retry_after) + 1
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded. Try again in {wait} seconds.",
            headers={
                "X-RateLimit-Remaining": str(decision.remaining),
                "Retry-After": str(wait),
            },
        )


protected = [Depends(check_rate_limit), Depends(verify_api_key)]


# ============================================================================
# Endpoints
# ============================================================================

@app.get("/", include_in_schema=False)
async def root():
    return {"message": "Flight Finder API", "docs": "/docs"}


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Report liveness, version and which features are switched on."""
    config = get_config()
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(),
        features={
            "flight_search": True,
            "airport_lookup": True,
            "derivation": True,
            "comparison": True,
            "price_calendar": True,
            "mock_mode": config.use_mock,
            "authentication": bool(config.api_key),
        },
    )


@app.get("/api/flights", tags=["Flights"], dependencies=protected)
def search_flights_endpoint(
    origin: Optional[str] = Query(None, description="Origin airport IATA code"),
    destination: Optional[str] = Query(None, description="Destination airport IATA code"),
    departure_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    return_date: Optional[str] = Query(None, description="YYYY-MM-DD for round-trip"),
    passengers: int = Query(1, description="Number of passengers (1-9)"),
    cabin_class: Optional[str] = Query(None),
):
    """
    Search for flights between airports.

    Invalid input answers 400; a provider failure that cannot fall back to
    sample data answers 503.
    """
    raw = {
        "origin": origin,
        "destination": destination,
        "departure_date": departure_date,
        "return_date": return_date,
        "passengers": passengers,
        "cabin_class": cabin_class,
    }
    result = search_flights({k: v for k, v in raw.items() if v is not None})

    if not result.success:
        error = result.error or FlightSearchError(code=ErrorCode.UNKNOWN, message="Search failed")
        return JSONResponse(status_code=status_for(error), content=error_body(error))

    response = result.to_response()
    response["summary"] = result.summary()
    return response


@app.get("/api/airports", tags=["Airports"], dependencies=protected)
async def search_airports_endpoint(
    q: str = Query("", description="City, airport name, code or country"),
    code: Optional[str] = Query(None, description="Exact airport code lookup"),
    exclude: Optional[str] = Query(None, description="Airport code to leave out"),
    popular: bool = Query(False, description="Return popular airports"),
    limit: int = Query(10, ge=1, le=50, description="Maximum results"),
):
    """
    Search for airports by name or city.

    Without a query (or with ``popular=true``) returns popular airports.
    """
    directory = get_airport_directory()

    if code:
        airport = directory.by_code(code)
        if airport is None:
            raise FlightAPIException.from_code(ErrorCode.NOT_FOUND, "Airport not found")
        return {"data": airport.to_dict()}

    query = q.strip()
    if popular or not query:
        airports = directory.popular(exclude_code=exclude, limit=limit)
        return {"data": [a.to_dict() for a in airports], "type": "popular", "count": len(airports)}

    airports = directory.search(query, exclude_code=exclude, limit=limit)
    response = {"data": [a.to_dict() for a in airports], "type": "search", "query": query, "count": len(airports)}
    if not airports and len(query) < 2:
        response["message"] = "Query must be at least 2 characters"
    return response


@app.post("/api/flights/derive", response_model=DeriveResponse, tags=["Flights"], dependencies=protected)
async def derive_flights_endpoint(request: DeriveRequest):
    """
    Apply filters and sorting to a flight list.

    Returns the visible flights with stats, price bounds and the facet
    counts used to render filter controls.
    """
    flights = [f.to_flight() for f in request.flights]
    filters = request.filters.to_filter_state(compute_price_bounds(flights))

    collection = FlightCollection()
    collection.replace_flights(flights)
    collection.set_filters(filters)

    return DeriveResponse(
        flights=[FlightSchema.from_flight(f) for f in collection.visible()],
        stats=FlightStatsSchema.from_stats(collection.stats()),
        price_bounds=collection.price_bounds(),
        airlines=[AirlineFacetSchema.from_facet(a) for a in collection.airline_facets()],
        stops_counts={b.value: n for b, n in collection.stops_counts(request.cross_filter).items()},
        time_slot_counts={s.value: n for s, n in collection.time_slot_counts(request.cross_filter).items()},
        filters=FilterStateSchema.from_filter_state(collection.filters),
        active_filter_count=collection.active_filter_count(),
    )


@app.post("/api/flights/compare", response_model=CompareResponse, tags=["Flights"], dependencies=protected)
async def compare_flights_endpoint(request: CompareRequest):
    """
    Apply comparison toggles in order and return the compared flights.

    A toggle that would exceed the capacity is reported as
    ``rejected_at_capacity`` and leaves the set unchanged.
    """
    collection = FlightCollection()
    collection.replace_flights([f.to_flight() for f in request.flights])
    outcomes = [collection.toggle_comparison(flight_id) for flight_id in request.toggles]

    return CompareResponse(
        ids=list(collection.comparison_ids),
        outcomes=outcomes,
        entries=[ComparisonEntrySchema.from_entry(e) for e in collection.comparison_entries()],
        is_full=collection.snapshot().comparison.is_full,
    )


@app.get("/api/price-calendar", tags=["Flights"], dependencies=protected)
async def price_calendar_endpoint(
    origin: str = Query(..., min_length=3, max_length=3),
    destination: str = Query(..., min_length=3, max_length=3),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD (default: today)"),
    days: int = Query(30, ge=1, le=90),
    seed: Optional[int] = Query(None, description="Seed for reproducible output"),
):
    """Sample cheapest price per day for a route."""
    try:
        start = validate_date(start_date) if start_date else date.today()
    except ValueError as e:
        raise FlightAPIException.from_code(ErrorCode.INVALID_DATE, str(e))

    points = generate_price_graph_data(origin.upper(), destination.upper(), start, days=days, seed=seed)
    return {
        "origin": origin.upper(),
        "destination": destination.upper(),
        "data": [p.to_dict() for p in points],
        "count": len(points),
    }


# ============================================================================
# Error Handlers
# ============================================================================

@app.exception_handler(FlightAPIException)
async def flight_api_exception_handler(request: Request, exc: FlightAPIException):
    """Structured errors raised by endpoints."""
    return JSONResponse(status_code=status_for(exc.error), content=error_body(exc.error))


@app.exception_handler(FilterStateError)
async def filter_state_exception_handler(request: Request, exc: FilterStateError):
    """Filter selections the model cannot represent."""
    error = FlightSearchError.from_exception(exc)
    return JSONResponse(status_code=status_for(error), content=error_body(error))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Flatten HTTPException detail into the same ``error`` key as other errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail,
            "status_code": exc.status_code,
        },
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Last resort: log the traceback, answer 500 without internals."""
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "code": ErrorCode.UNKNOWN.value,
        },
    )


# ============================================================================
# CLI Entry Point
# ============================================================================

def run(host: str = "0.0.0.0", port: int = 8000, reload: bool = False):
    """Serve the API with uvicorn (the ``flight-finder-api`` script)."""
    import uvicorn

    logging.basicConfig(
        level=get_config().log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    logger.info(f"Starting Flight Finder API on http://{host}:{port}")
    logger.info(f"API Docs: http://{host}:{port}/docs")

    uvicorn.run(
        "flight_finder.http_api:app",
        host=host,
        port=port,
        reload=reload,
    )


if __name__ == "__main__":
    import sys

    host = sys.argv[1] if len(sys.argv) > 1 else "0.0.0.0"
    port = int(sys.argv[2]) if len(sys.argv) > 2 else 8000

    run(host=host, port=port, reload=True)


__all__ = [
    "app",
    "run",
]
