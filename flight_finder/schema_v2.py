"""
Pydantic models for the HTTP surface.

The derivation core works on the frozen dataclasses in ``schema``. These
models validate incoming JSON, convert to and from the core types, and
describe responses in the OpenAPI schema.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Literal, Optional, Tuple, Union

from pydantic import AwareDatetime, BaseModel, Field

from .aggregation import AirlineFacet, FlightStats
from .comparison import ComparisonEntry
from .errors import FlightSearchError
from .filters import FilterState
from .schema import Flight, SearchParams
from .types import CabinClass, ProviderType, SortKey, TimeSlot, ToggleOutcome


# ============================================================================
# Flight data
# ============================================================================

class AirportSchema(BaseModel):
    code: str = Field(min_length=3, max_length=4, description="IATA airport code")
    city: str = ""
    name: str = ""
    country: str = ""


class AirlineSchema(BaseModel):
    code: str = Field(description="IATA airline code (e.g., 'IB', 'LH')")
    name: str
    logo: Optional[str] = None


class PriceSchema(BaseModel):
    amount: float = Field(ge=0, description="Total price for all passengers")
    currency: str = Field(default="EUR", min_length=3, max_length=3)


class SegmentEndpointSchema(BaseModel):
    airport: AirportSchema
    time: AwareDatetime


class SegmentSchema(BaseModel):
    """One leg of an itinerary."""
    departure: SegmentEndpointSchema
    arrival: SegmentEndpointSchema
    duration: int = Field(ge=0, description="Leg duration in minutes")
    flight_number: str = ""
    airline: AirlineSchema


class FlightSchema(BaseModel):
    """A single flight offer with full validation."""

    id: str = Field(min_length=1, description="Identifier, unique within one result set")
    airline: AirlineSchema
    origin: AirportSchema
    destination: AirportSchema
    departure_time: AwareDatetime = Field(
        description="Departure instant with the origin's UTC offset (e.g., '2025-06-15T06:30:00+02:00')"
    )
    arrival_time: AwareDatetime
    duration: int = Field(ge=0, description="Total duration in minutes")
    stops: int = Field(ge=0, description="Number of stops (0 = nonstop)")
    price: PriceSchema
    segments: List[SegmentSchema] = Field(default_factory=list)
    seats_left: Optional[int] = Field(default=None, ge=0)

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "FL001",
                "airline": {"code": "IB", "name": "Iberia", "logo": None},
                "origin": {"code": "MAD", "city": "Madrid", "name": "Adolfo Suárez Madrid-Barajas", "country": "Spain"},
                "destination": {"code": "BCN", "city": "Barcelona", "name": "El Prat", "country": "Spain"},
                "departure_time": "2025-06-15T06:30:00+02:00",
                "arrival_time": "2025-06-15T08:30:00+02:00",
                "duration": 120,
                "stops": 0,
                "price": {"amount": 89, "currency": "EUR"},
                "segments": [],
                "seats_left": 4,
            }
        }
    }

    @classmethod
    def from_flight(cls, flight: Flight) -> "FlightSchema":
        """Convert a Flight dataclass to FlightSchema."""
        return cls.model_validate(flight.to_dict())

    def to_flight(self) -> Flight:
        """Convert back to the immutable core type."""
        return Flight.from_dict(self.model_dump(mode="json"))


# ============================================================================
# Search
# ============================================================================

class FlightSearchRequest(BaseModel):
    """
    Input schema for flight search.

    Only shape is checked here; ``search.validate_search_params`` applies the
    date rules, which depend on today's date.
    """

    origin: str = Field(
        description="Origin airport IATA code (e.g., 'MAD')",
        min_length=3,
        max_length=3,
    )
    destination: str = Field(
        description="Destination airport IATA code (e.g., 'BCN')",
        min_length=3,
        max_length=3,
    )
    departure_date: str = Field(
        description="Departure date in YYYY-MM-DD format",
        pattern=r"^\d{4}-\d{2}-\d{2}$",
    )
    return_date: Optional[str] = Field(
        default=None,
        description="Return date for round-trip in YYYY-MM-DD format. Omit for one-way.",
        pattern=r"^\d{4}-\d{2}-\d{2}$",
    )
    passengers: int = Field(default=1, ge=1, le=9, description="Number of passengers (1-9)")
    cabin_class: Optional[CabinClass] = Field(default=None, description="Cabin class")
    provider: Optional[ProviderType] = Field(
        default=None,
        description="Force a provider; resolved from configuration when omitted",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"origin": "MAD", "destination": "BCN", "departure_date": "2025-06-15"},
                {
                    "origin": "MAD",
                    "destination": "LHR",
                    "departure_date": "2025-07-01",
                    "return_date": "2025-07-15",
                    "passengers": 2,
                    "cabin_class": "business",
                },
            ]
        }
    }

    @property
    def trip_type(self) -> Literal["one-way", "round-trip"]:
        return "round-trip" if self.return_date else "one-way"

    def to_search_params(self) -> SearchParams:
        """
        Build core search parameters.

        Raises:
            ValueError: If a date string is not a real calendar date
        """
        return SearchParams(
            origin=self.origin.strip().upper(),
            destination=self.destination.strip().upper(),
            departure_date=date.fromisoformat(self.departure_date),
            return_date=date.fromisoformat(self.return_date) if self.return_date else None,
            passengers=self.passengers,
            cabin_class=self.cabin_class,
        )


class FlightSearchResult(BaseModel):
    """Result of a flight search. Never carries partial data on failure."""

    success: bool = Field(description="Whether the search completed successfully")
    flights: List[FlightSchema] = Field(default_factory=list)
    source: Optional[str] = Field(
        default=None,
        description="Provider that produced the flights (e.g., 'mock', 'serpapi')",
    )
    cached: bool = Field(default=False, description="Served from the search cache")
    warning: Optional[str] = Field(
        default=None,
        description="Set when sample data was substituted for a failing provider",
    )
    message: Optional[str] = None
    error: Optional[FlightSearchError] = None

    @property
    def count(self) -> int:
        return len(self.flights)

    def to_flights(self) -> List[Flight]:
        return [f.to_flight() for f in self.flights]

    def to_response(self) -> dict:
        """Serialize with the derived ``count`` field included."""
        data = self.model_dump(mode="json")
        data["count"] = self.count
        return data

    def summary(self) -> str:
        """Human-readable one-line summary."""
        if not self.success:
            return f"Flight search failed: {self.error.message if self.error else 'unknown error'}"
        if not self.flights:
            return "No flights found for the specified route and dates."
        cheapest = min(self.flights, key=lambda f: f.price.amount)
        return (
            f"Found {self.count} flight option(s) from {self.source}. "
            f"Cheapest: {cheapest.airline.name} at {cheapest.price.amount:g} {cheapest.price.currency}."
        )


# ============================================================================
# Derivation
# ============================================================================

class FilterStateSchema(BaseModel):
    """
    Filter selections as plain lists.

    ``null`` means unrestricted for every facet; an empty ``airlines`` list
    does too. Empty ``stops`` or ``time_slots`` lists are rejected when
    converted.
    """

    stops: Optional[List[Union[int, str]]] = Field(
        default=None,
        description="Stops buckets: 0, 1 and '2+' (2 is read as '2+')",
    )
    price_range: Optional[Tuple[float, float]] = Field(
        default=None,
        description="Inclusive [min, max] price; defaults to the flights' price bounds",
    )
    airlines: Optional[List[str]] = None
    time_slots: Optional[List[TimeSlot]] = None
    sort_by: SortKey = SortKey.PRICE

    def to_filter_state(self, price_bounds: Optional[Tuple[float, float]] = None) -> FilterState:
        """
        Raises:
            FilterStateError: For empty or unknown stops/time-slot selections
        """
        price_range = self.price_range if self.price_range is not None else price_bounds
        return FilterState.from_selections(
            stops=self.stops,
            price_range=price_range,
            airlines=self.airlines,
            time_slots=self.time_slots,
            sort_by=self.sort_by,
        )

    @classmethod
    def from_filter_state(cls, state: FilterState) -> "FilterStateSchema":
        data = state.to_dict()
        return cls(
            stops=data["stops"],
            price_range=tuple(data["price_range"]),
            airlines=data["airlines"],
            time_slots=data["time_slots"],
            sort_by=data["sort_by"],
        )


class FlightStatsSchema(BaseModel):
    min_price: float
    max_price: float
    avg_price: int
    total_count: int
    visible_count: int

    @classmethod
    def from_stats(cls, stats: FlightStats) -> "FlightStatsSchema":
        return cls(**stats.to_dict())


class AirlineFacetSchema(BaseModel):
    code: str
    name: str
    logo: Optional[str] = None
    count: int

    @classmethod
    def from_facet(cls, facet: AirlineFacet) -> "AirlineFacetSchema":
        return cls(**facet.to_dict())


class DeriveRequest(BaseModel):
    """Raw flight list plus filters to derive the visible list from."""
    flights: List[FlightSchema] = Field(default_factory=list)
    filters: FilterStateSchema = Field(default_factory=FilterStateSchema)
    cross_filter: bool = Field(
        default=False,
        description="Count stops/time-slot options only among flights passing the other filters",
    )


class DeriveResponse(BaseModel):
    flights: List[FlightSchema]
    stats: FlightStatsSchema
    price_bounds: Tuple[float, float]
    airlines: List[AirlineFacetSchema]
    stops_counts: Dict[str, int]
    time_slot_counts: Dict[str, int]
    filters: FilterStateSchema
    active_filter_count: int


class ComparisonEntrySchema(BaseModel):
    flight: FlightSchema
    is_best_price: bool
    is_best_duration: bool

    @classmethod
    def from_entry(cls, entry: ComparisonEntry) -> "ComparisonEntrySchema":
        return cls(
            flight=FlightSchema.from_flight(entry.flight),
            is_best_price=entry.is_best_price,
            is_best_duration=entry.is_best_duration,
        )


class CompareRequest(BaseModel):
    """Flights plus a sequence of comparison toggles to apply in order."""
    flights: List[FlightSchema] = Field(default_factory=list)
    toggles: List[str] = Field(default_factory=list, description="Flight ids to toggle, in order")


class CompareResponse(BaseModel):
    ids: List[str]
    outcomes: List[ToggleOutcome]
    entries: List[ComparisonEntrySchema]
    is_full: bool


__all__ = [
    "AirportSchema",
    "AirlineSchema",
    "PriceSchema",
    "SegmentSchema",
    "FlightSchema",
    "FlightSearchRequest",
    "FlightSearchResult",
    "FilterStateSchema",
    "FlightStatsSchema",
    "AirlineFacetSchema",
    "DeriveRequest",
    "DeriveResponse",
    "ComparisonEntrySchema",
    "CompareRequest",
    "CompareResponse",
]
