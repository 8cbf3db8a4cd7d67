"""
Airport and airline reference data.

``InMemoryAirportDirectory`` answers autocomplete queries over a static
airport list. Matching is a case-insensitive substring test over code, city,
name and country; results are ranked exact code match first, then city
prefix, then code prefix, keeping list order otherwise.

Usage:
    >>> directory = get_airport_directory()
    >>> [a.code for a in directory.search("lon", limit=3)]
    ['LHR', 'LGW', 'STN']
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .schema import Airline, Airport

logger = logging.getLogger(__name__)

# Shorter queries return nothing
MIN_QUERY_LENGTH = 2

# (code, city, name, country)
_AIRPORT_ROWS: Tuple[Tuple[str, str, str, str], ...] = (
    # Spain
    ("MAD", "Madrid", "Adolfo Suárez Madrid-Barajas", "Spain"),
    ("BCN", "Barcelona", "Barcelona-El Prat", "Spain"),
    ("AGP", "Málaga", "Málaga-Costa del Sol", "Spain"),
    ("PMI", "Palma de Mallorca", "Palma de Mallorca Airport", "Spain"),
    ("ALC", "Alicante", "Alicante-Elche Airport", "Spain"),
    ("VLC", "Valencia", "Valencia Airport", "Spain"),
    ("SVQ", "Seville", "Seville Airport", "Spain"),
    ("BIO", "Bilbao", "Bilbao Airport", "Spain"),
    ("IBZ", "Ibiza", "Ibiza Airport", "Spain"),
    ("TFS", "Tenerife", "Tenerife South Airport", "Spain"),
    ("LPA", "Gran Canaria", "Gran Canaria Airport", "Spain"),
    ("MAH", "Menorca", "Menorca Airport", "Spain"),

    # United Kingdom
    ("LHR", "London", "Heathrow Airport", "United Kingdom"),
    ("LGW", "London", "Gatwick Airport", "United Kingdom"),
    ("STN", "London", "Stansted Airport", "United Kingdom"),
    ("LTN", "London", "Luton Airport", "United Kingdom"),
    ("MAN", "Manchester", "Manchester Airport", "United Kingdom"),
    ("EDI", "Edinburgh", "Edinburgh Airport", "United Kingdom"),
    ("BHX", "Birmingham", "Birmingham Airport", "United Kingdom"),
    ("GLA", "Glasgow", "Glasgow Airport", "United Kingdom"),
    ("BRS", "Bristol", "Bristol Airport", "United Kingdom"),

    # France
    ("CDG", "Paris", "Charles de Gaulle Airport", "France"),
    ("ORY", "Paris", "Orly Airport", "France"),
    ("NCE", "Nice", "Nice Côte d'Azur Airport", "France"),
    ("LYS", "Lyon", "Lyon-Saint Exupéry Airport", "France"),
    ("MRS", "Marseille", "Marseille Provence Airport", "France"),
    ("TLS", "Toulouse", "Toulouse-Blagnac Airport", "France"),
    ("BOD", "Bordeaux", "Bordeaux-Mérignac Airport", "France"),

    # Germany
    ("FRA", "Frankfurt", "Frankfurt Airport", "Germany"),
    ("MUC", "Munich", "Munich Airport", "Germany"),
    ("BER", "Berlin", "Berlin Brandenburg Airport", "Germany"),
    ("DUS", "Düsseldorf", "Düsseldorf Airport", "Germany"),
    ("HAM", "Hamburg", "Hamburg Airport", "Germany"),
    ("STR", "Stuttgart", "Stuttgart Airport", "Germany"),
    ("CGN", "Cologne", "Cologne Bonn Airport", "Germany"),

    # Italy
    ("FCO", "Rome", "Leonardo da Vinci-Fiumicino Airport", "Italy"),
    ("MXP", "Milan", "Milan Malpensa Airport", "Italy"),
    ("LIN", "Milan", "Milan Linate Airport", "Italy"),
    ("VCE", "Venice", "Venice Marco Polo Airport", "Italy"),
    ("NAP", "Naples", "Naples International Airport", "Italy"),
    ("BGY", "Bergamo", "Milan Bergamo Airport", "Italy"),
    ("BLQ", "Bologna", "Bologna Guglielmo Marconi Airport", "Italy"),
    ("FLR", "Florence", "Florence Airport", "Italy"),
    ("CTA", "Catania", "Catania-Fontanarossa Airport", "Italy"),
    ("PMO", "Palermo", "Palermo Airport", "Italy"),

    # Netherlands
    ("AMS", "Amsterdam", "Amsterdam Schiphol Airport", "Netherlands"),
    ("EIN", "Eindhoven", "Eindhoven Airport", "Netherlands"),
    ("RTM", "Rotterdam", "Rotterdam The Hague Airport", "Netherlands"),

    # Belgium
    ("BRU", "Brussels", "Brussels Airport", "Belgium"),
    ("CRL", "Charleroi", "Brussels South Charleroi Airport", "Belgium"),

    # Portugal
    ("LIS", "Lisbon", "Lisbon Humberto Delgado Airport", "Portugal"),
    ("OPO", "Porto", "Porto Francisco Sá Carneiro Airport", "Portugal"),
    ("FAO", "Faro", "Faro Airport", "Portugal"),
    ("FNC", "Funchal", "Madeira Airport", "Portugal"),

    # Switzerland
    ("ZRH", "Zurich", "Zurich Airport", "Switzerland"),
    ("GVA", "Geneva", "Geneva Airport", "Switzerland"),
    ("BSL", "Basel", "EuroAirport Basel-Mulhouse-Freiburg", "Switzerland"),

    # Austria
    ("VIE", "Vienna", "Vienna International Airport", "Austria"),
    ("SZG", "Salzburg", "Salzburg Airport", "Austria"),
    ("INN", "Innsbruck", "Innsbruck Airport", "Austria"),

    # Scandinavia
    ("CPH", "Copenhagen", "Copenhagen Airport", "Denmark"),
    ("OSL", "Oslo", "Oslo Gardermoen Airport", "Norway"),
    ("BGO", "Bergen", "Bergen Airport", "Norway"),
    ("ARN", "Stockholm", "Stockholm Arlanda Airport", "Sweden"),
    ("GOT", "Gothenburg", "Gothenburg Landvetter Airport", "Sweden"),
    ("HEL", "Helsinki", "Helsinki-Vantaa Airport", "Finland"),

    # Ireland
    ("DUB", "Dublin", "Dublin Airport", "Ireland"),
    ("SNN", "Shannon", "Shannon Airport", "Ireland"),
    ("ORK", "Cork", "Cork Airport", "Ireland"),

    # Eastern Europe
    ("WAW", "Warsaw", "Warsaw Chopin Airport", "Poland"),
    ("KRK", "Krakow", "Krakow John Paul II Airport", "Poland"),
    ("PRG", "Prague", "Václav Havel Airport Prague", "Czech Republic"),
    ("BUD", "Budapest", "Budapest Ferenc Liszt Airport", "Hungary"),
    ("OTP", "Bucharest", "Henri Coandă International Airport", "Romania"),
    ("SOF", "Sofia", "Sofia Airport", "Bulgaria"),

    # Greece
    ("ATH", "Athens", "Athens International Airport", "Greece"),
    ("SKG", "Thessaloniki", "Thessaloniki Airport", "Greece"),
    ("HER", "Heraklion", "Heraklion International Airport", "Greece"),
    ("RHO", "Rhodes", "Rhodes International Airport", "Greece"),
    ("CFU", "Corfu", "Corfu International Airport", "Greece"),
    ("JMK", "Mykonos", "Mykonos Airport", "Greece"),
    ("JTR", "Santorini", "Santorini Airport", "Greece"),

    # Turkey
    ("IST", "Istanbul", "Istanbul Airport", "Turkey"),
    ("SAW", "Istanbul", "Sabiha Gökçen Airport", "Turkey"),
    ("AYT", "Antalya", "Antalya Airport", "Turkey"),
    ("ADB", "Izmir", "Izmir Adnan Menderes Airport", "Turkey"),

    # Middle East & Gulf
    ("DXB", "Dubai", "Dubai International Airport", "United Arab Emirates"),
    ("AUH", "Abu Dhabi", "Abu Dhabi International Airport", "United Arab Emirates"),
    ("DOH", "Doha", "Hamad International Airport", "Qatar"),
    ("TLV", "Tel Aviv", "Ben Gurion Airport", "Israel"),
    ("AMM", "Amman", "Queen Alia International Airport", "Jordan"),

    # North America
    ("JFK", "New York", "John F. Kennedy International Airport", "United States"),
    ("EWR", "Newark", "Newark Liberty International Airport", "United States"),
    ("LAX", "Los Angeles", "Los Angeles International Airport", "United States"),
    ("ORD", "Chicago", "O'Hare International Airport", "United States"),
    ("MIA", "Miami", "Miami International Airport", "United States"),
    ("SFO", "San Francisco", "San Francisco International Airport", "United States"),
    ("BOS", "Boston", "Boston Logan International Airport", "United States"),
    ("ATL", "Atlanta", "Hartsfield-Jackson Atlanta International Airport", "United States"),
    ("DFW", "Dallas", "Dallas/Fort Worth International Airport", "United States"),
    ("SEA", "Seattle", "Seattle-Tacoma International Airport", "United States"),
    ("YYZ", "Toronto", "Toronto Pearson International Airport", "Canada"),
    ("YVR", "Vancouver", "Vancouver International Airport", "Canada"),
    ("YUL", "Montreal", "Montréal-Trudeau International Airport", "Canada"),
    ("MEX", "Mexico City", "Mexico City International Airport", "Mexico"),
    ("CUN", "Cancún", "Cancún International Airport", "Mexico"),

    # South America
    ("GRU", "São Paulo", "São Paulo-Guarulhos International Airport", "Brazil"),
    ("GIG", "Rio de Janeiro", "Rio de Janeiro-Galeão International Airport", "Brazil"),
    ("EZE", "Buenos Aires", "Ministro Pistarini International Airport", "Argentina"),
    ("SCL", "Santiago", "Arturo Merino Benítez International Airport", "Chile"),
    ("BOG", "Bogotá", "El Dorado International Airport", "Colombia"),
    ("LIM", "Lima", "Jorge Chávez International Airport", "Peru"),

    # Asia
    ("NRT", "Tokyo", "Narita International Airport", "Japan"),
    ("HND", "Tokyo", "Tokyo Haneda Airport", "Japan"),
    ("PEK", "Beijing", "Beijing Capital International Airport", "China"),
    ("PVG", "Shanghai", "Shanghai Pudong International Airport", "China"),
    ("HKG", "Hong Kong", "Hong Kong International Airport", "Hong Kong"),
    ("SIN", "Singapore", "Singapore Changi Airport", "Singapore"),
    ("ICN", "Seoul", "Incheon International Airport", "South Korea"),
    ("BKK", "Bangkok", "Suvarnabhumi Airport", "Thailand"),
    ("KUL", "Kuala Lumpur", "Kuala Lumpur International Airport", "Malaysia"),
    ("DEL", "New Delhi", "Indira Gandhi International Airport", "India"),
    ("BOM", "Mumbai", "Chhatrapati Shivaji Maharaj International Airport", "India"),

    # Africa
    ("JNB", "Johannesburg", "O.R. Tambo International Airport", "South Africa"),
    ("CPT", "Cape Town", "Cape Town International Airport", "South Africa"),
    ("CAI", "Cairo", "Cairo International Airport", "Egypt"),
    ("CMN", "Casablanca", "Mohammed V International Airport", "Morocco"),
    ("RAK", "Marrakech", "Marrakech Menara Airport", "Morocco"),
    ("TUN", "Tunis", "Tunis-Carthage International Airport", "Tunisia"),

    # Oceania
    ("SYD", "Sydney", "Sydney Kingsford Smith Airport", "Australia"),
    ("MEL", "Melbourne", "Melbourne Airport", "Australia"),
    ("BNE", "Brisbane", "Brisbane Airport", "Australia"),
    ("AKL", "Auckland", "Auckland Airport", "New Zealand"),
)

AIRPORTS: Tuple[Airport, ...] = tuple(Airport(*row) for row in _AIRPORT_ROWS)

POPULAR_CODES: Tuple[str, ...] = (
    "MAD", "BCN", "LHR", "CDG", "FCO", "AMS", "FRA", "MUC", "LIS", "DXB", "JFK", "LAX",
)

AIRLINES: Dict[str, Airline] = {
    airline.code: airline
    for airline in (
        Airline("IB", "Iberia"),
        Airline("VY", "Vueling"),
        Airline("FR", "Ryanair"),
        Airline("U2", "easyJet"),
        Airline("LH", "Lufthansa"),
        Airline("AF", "Air France"),
        Airline("BA", "British Airways"),
        Airline("KL", "KLM"),
        Airline("AZ", "ITA Airways"),
        Airline("UX", "Air Europa"),
    )
}
"""Carriers used by the sample data, keyed by IATA code."""


def _relevance(airport: Airport, query: str) -> Tuple[int, int, int]:
    code = airport.code.lower()
    return (
        0 if code == query else 1,
        0 if airport.city.lower().startswith(query) else 1,
        0 if code.startswith(query) else 1,
    )


class InMemoryAirportDirectory:
    """
    Airport lookup over a fixed list.

    Attributes:
        airports: The searchable airports, in display order
    """

    def __init__(self, airports: Iterable[Airport] = AIRPORTS, popular_codes: Sequence[str] = POPULAR_CODES):
        self.airports: Tuple[Airport, ...] = tuple(airports)
        self.popular_codes = tuple(code.upper() for code in popular_codes)
        self._by_code = {airport.code.upper(): airport for airport in self.airports}

    def search(
        self,
        query: str,
        exclude_code: Optional[str] = None,
        limit: int = 10,
    ) -> List[Airport]:
        """
        Find airports matching ``query``.

        Args:
            query: Free text; at least 2 characters after trimming
            exclude_code: Airport to leave out (e.g., the other end of the route)
            limit: Maximum number of results

        Returns:
            Matching airports, most relevant first
        """
        needle = query.strip().lower()
        if len(needle) < MIN_QUERY_LENGTH:
            return []
        excluded = exclude_code.upper() if exclude_code else None

        results = [
            airport
            for airport in self.airports
            if airport.code != excluded
            and any(
                needle in part.lower()
                for part in (airport.code, airport.city, airport.name, airport.country)
            )
        ]
        results.sort(key=lambda airport: _relevance(airport, needle))
        logger.debug(f"Airport search '{query}' matched {len(results)} airports")
        return results[:limit]

    def by_code(self, code: str) -> Optional[Airport]:
        return self._by_code.get(code.strip().upper())

    def popular(self, exclude_code: Optional[str] = None, limit: int = 6) -> List[Airport]:
        """Popular airports in list order, for suggestions before typing."""
        excluded = exclude_code.upper() if exclude_code else None
        return [
            airport
            for airport in self.airports
            if airport.code in self.popular_codes and airport.code != excluded
        ][:limit]


# Global directory instance
_directory: Optional[InMemoryAirportDirectory] = None


def get_airport_directory() -> InMemoryAirportDirectory:
    global _directory
    if _directory is None:
        _directory = InMemoryAirportDirectory()
    return _directory


def get_airline(code: str) -> Airline:
    """Known airline for ``code``, or a bare entry named after the code."""
    code = code.upper()
    return AIRLINES.get(code) or Airline(code, code)


__all__ = [
    "AIRPORTS",
    "AIRLINES",
    "POPULAR_CODES",
    "MIN_QUERY_LENGTH",
    "InMemoryAirportDirectory",
    "get_airport_directory",
    "get_airline",
]
