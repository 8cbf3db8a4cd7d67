"""
Shared utilities for flight-finder.

This module provides common helper functions used across the codebase:
display formatting for flights and input validation for search parameters.
"""

from __future__ import annotations

import re
import random
import string
import time
from datetime import date, datetime
from typing import Optional, Union

from .schema import Flight, FlightSegment

CURRENCY_SYMBOLS = {
    "EUR": "€",
    "USD": "$",
    "GBP": "£",
}

IATA_CODE = re.compile(r"^[A-Z]{3}$")
ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def format_duration(minutes: int) -> str:
    """
    Render a trip length as hours and minutes; minutes are always shown.

    Examples:
        >>> format_duration(330)
        '5h 30m'
        >>> format_duration(120)
        '2h 0m'
    """
    hours, rest = divmod(minutes, 60)
    return f"{hours}h {rest}m"


def format_time(value: datetime) -> str:
    """
    Format the wall-clock time of an instant, in its own offset.

    Examples:
        >>> format_time(datetime(2025, 6, 15, 9, 5))
        '09:05'
    """
    return f"{value.hour:02d}:{value.minute:02d}"


def format_date(value: Union[date, datetime]) -> str:
    """
    Format a date for display.

    Examples:
        >>> format_date(date(2025, 6, 15))
        'Sun, 15 Jun'
    """
    return value.strftime("%a, %d %b").replace(" 0", " ")


def format_price(amount: float, currency: str = "EUR") -> str:
    """
    Format a price with its currency symbol, without decimals.

    Examples:
        >>> format_price(89)
        '€89'
        >>> format_price(1299.5, "CHF")
        'CHF 1300'
    """
    rounded = int(round(amount))
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    if symbol:
        return f"{symbol}{rounded}"
    return f"{currency.upper()} {rounded}"


def stops_label(stops: int) -> str:
    """
    Examples:
        >>> stops_label(0)
        'Nonstop'
        >>> stops_label(2)
        '2 stops'
    """
    if stops == 0:
        return "Nonstop"
    if stops == 1:
        return "1 stop"
    return f"{stops} stops"


def layover_minutes(arriving: FlightSegment, departing: FlightSegment) -> int:
    """Minutes spent on the ground between two consecutive segments."""
    return int((departing.departure_time - arriving.arrival_time).total_seconds() // 60)


def arrival_day_offset(flight: Flight) -> int:
    """
    Calendar days between local departure and local arrival ("+1" badges).
    """
    return (flight.arrival_time.date() - flight.departure_time.date()).days


def generate_id(prefix: str) -> str:
    """
    Generate a locally unique identifier such as ``search-1718000000000-k3j9x2a``.
    """
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=7))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def validate_airport_code(code: str) -> str:
    """
    Normalize an IATA airport code to upper case.

    Raises:
        ValueError: Unless the trimmed code is exactly three letters
    """
    normalized = code.strip().upper()
    if not IATA_CODE.match(normalized):
        raise ValueError(f"'{code}' is not a 3-letter airport code")
    return normalized


def validate_date(date_str: str, not_before: Optional[date] = None) -> date:
    """
    Parse a YYYY-MM-DD travel date.

    Args:
        date_str: Date as sent by the client
        not_before: Earliest acceptable date, if any

    Raises:
        ValueError: On a malformed or non-existent date, or one before
            ``not_before``
    """
    if not ISO_DATE.match(date_str):
        raise ValueError(f"Invalid date format: {date_str}. Use YYYY-MM-DD.")

    try:
        parsed = datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError as e:
        raise ValueError(f"Invalid date: {date_str}. {e}") from e

    if not_before is not None and parsed < not_before:
        raise ValueError(f"Invalid date: {date_str} is before {not_before.isoformat()}")

    return parsed


__all__ = [
    "format_duration",
    "format_time",
    "format_date",
    "format_price",
    "stops_label",
    "layover_minutes",
    "arrival_day_offset",
    "generate_id",
    "validate_airport_code",
    "validate_date",
]
