"""
Structured error handling for flight search.

This module provides error types with standardized codes, messages,
retry hints and recovery suggestions that the HTTP layer and clients can
act on without parsing free-form text.

The derivation core (filters, aggregation, comparison) has no error
taxonomy: it never raises for well-typed input. The only core-side error
is ``FilterStateError``, raised when a filter facet would be built in a
state the model cannot represent (an empty stops or time-slot selection).
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """
    Standardized error codes.

    These codes allow callers to programmatically handle different
    error types without parsing error messages.
    """

    # Input validation errors
    INVALID_PARAMS = "INVALID_PARAMS"
    INVALID_AIRPORT = "INVALID_AIRPORT"
    INVALID_DATE = "INVALID_DATE"
    INVALID_FILTERS = "INVALID_FILTERS"

    # Provider errors
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    PROVIDER_NOT_CONFIGURED = "PROVIDER_NOT_CONFIGURED"
    RATE_LIMITED = "RATE_LIMITED"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"

    # Result errors
    NO_RESULTS = "NO_RESULTS"
    NOT_FOUND = "NOT_FOUND"

    UNKNOWN = "UNKNOWN"


# Provider failures that are answered with sample data instead of an error
FALLBACK_ERROR_CODES = frozenset({
    ErrorCode.INVALID_CREDENTIALS,
    ErrorCode.RATE_LIMITED,
    ErrorCode.NETWORK_ERROR,
})


class FilterStateError(ValueError):
    """A filter facet was given a selection it cannot represent."""


class FlightSearchError(BaseModel):
    """
    Structured error response.

    Provides machine-readable error information with a human-friendly
    description and an actionable recovery suggestion.
    """

    code: ErrorCode = Field(
        description="Machine-readable error code"
    )
    message: str = Field(
        description="Human-readable error message"
    )
    details: Optional[dict] = Field(
        default=None,
        description="Additional error context (e.g., invalid field names)"
    )
    retryable: bool = Field(
        default=False,
        description="Whether repeating the same request may succeed"
    )
    suggested_action: Optional[str] = Field(
        default=None,
        description="Suggested action to resolve the error"
    )
    retry_after_seconds: Optional[int] = Field(
        default=None,
        description="Seconds to wait before retrying (for rate limit errors)"
    )

    @classmethod
    def from_exception(cls, e: Exception) -> "FlightSearchError":
        """
        Convert an exception to a structured FlightSearchError.

        ``FlightAPIException`` carries its own error and is unwrapped.
        Anything else is classified by its message.

        Args:
            e: The exception to convert

        Returns:
            FlightSearchError with appropriate code and message
        """
        if isinstance(e, FlightAPIException):
            return e.error

        if isinstance(e, FilterStateError):
            return cls(
                code=ErrorCode.INVALID_FILTERS,
                message=str(e),
                suggested_action="Keep at least one stops option and one departure time selected",
            )

        error_str = str(e).lower()

        if "401" in error_str or "unauthorized" in error_str or "api key" in error_str or "credential" in error_str:
            return cls(
                code=ErrorCode.INVALID_CREDENTIALS,
                message="Provider rejected the configured credentials",
                retryable=False,
                suggested_action="Check the provider API key",
            )

        if "429" in error_str or "rate" in error_str or "too many" in error_str:
            return cls(
                code=ErrorCode.RATE_LIMITED,
                message="Rate limited by flight provider",
                retryable=True,
                suggested_action="Wait 30-60 seconds before retrying",
                retry_after_seconds=60,
            )

        if "timeout" in error_str or "timed out" in error_str:
            return cls(
                code=ErrorCode.TIMEOUT,
                message="Request timed out",
                retryable=True,
                suggested_action="Retry the request",
            )

        if isinstance(e, ConnectionError) or any(
            x in error_str for x in ["connection", "network", "dns", "socket"]
        ):
            return cls(
                code=ErrorCode.NETWORK_ERROR,
                message="Network connection error",
                retryable=True,
                suggested_action="Check internet connection and retry",
            )

        if "no flights" in error_str or "no results" in error_str:
            return cls(
                code=ErrorCode.NO_RESULTS,
                message="No flights found for the specified route and dates",
                suggested_action="Try different dates or nearby airports",
            )

        if "airport" in error_str or "iata" in error_str:
            return cls(
                code=ErrorCode.INVALID_AIRPORT,
                message="Invalid airport code provided",
                suggested_action="Use 3-letter IATA codes (e.g., MAD, BCN)",
                details={"original_error": str(e)},
            )

        if "date" in error_str:
            return cls(
                code=ErrorCode.INVALID_DATE,
                message="Invalid date format or value",
                suggested_action="Use YYYY-MM-DD format with a date that is not in the past",
            )

        if "status" in error_str:
            status_match = re.search(r"(\d{3})", str(e))
            status_code = status_match.group(1) if status_match else "unknown"
            return cls(
                code=ErrorCode.NETWORK_ERROR,
                message=f"HTTP error {status_code}",
                retryable=True,
                suggested_action="Retry the request",
                details={"status_code": status_code},
            )

        return cls(
            code=ErrorCode.UNKNOWN,
            message=str(e) or "An unexpected error occurred",
            retryable=True,
            suggested_action="Check input parameters and try again",
            details={"exception_type": type(e).__name__},
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
            "suggested_action": self.suggested_action,
            "retry_after_seconds": self.retry_after_seconds,
        }


class FlightAPIException(Exception):
    """
    Raised by providers and parameter validation; carries a FlightSearchError.

    ``search_flights`` catches it and turns it into a failed result or a
    sample-data fallback, so it only escapes from lower-level calls.

    Attributes:
        error: The structured error

    Example:
        >>> try:
        ...     validate_search_params({"origin": "MAD"})
        ... except FlightAPIException as e:
        ...     e.code
        <ErrorCode.INVALID_PARAMS: 'INVALID_PARAMS'>
    """

    def __init__(self, error: FlightSearchError):
        self.error = error
        super().__init__(error.message)

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    def to_dict(self) -> dict:
        return self.error.to_dict()

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        message: Optional[str] = None,
        **kwargs: Any
    ) -> "FlightAPIException":
        """
        Build an exception for ``code`` with its stock message.

        ``retryable`` defaults to whether the code is a transient failure;
        any other FlightSearchError field may be passed through ``kwargs``.
        """
        kwargs.setdefault("retryable", code in RETRYABLE_CODES)
        return cls(FlightSearchError(
            code=code,
            message=message or DEFAULT_MESSAGES.get(code, code.value),
            **kwargs
        ))


DEFAULT_MESSAGES = {
    ErrorCode.INVALID_PARAMS: "Missing or invalid search parameters",
    ErrorCode.INVALID_AIRPORT: "Unknown or malformed airport code",
    ErrorCode.INVALID_DATE: "Unusable travel date",
    ErrorCode.INVALID_FILTERS: "Invalid filter selection",
    ErrorCode.INVALID_CREDENTIALS: "Provider rejected the configured credentials",
    ErrorCode.PROVIDER_NOT_CONFIGURED: "Flight provider is not configured",
    ErrorCode.RATE_LIMITED: "Provider rate limit reached",
    ErrorCode.NETWORK_ERROR: "Could not reach the flight provider",
    ErrorCode.TIMEOUT: "Request timed out",
    ErrorCode.NO_RESULTS: "No flights found",
    ErrorCode.NOT_FOUND: "Not found",
    ErrorCode.UNKNOWN: "An unknown error occurred",
}

RETRYABLE_CODES = frozenset({
    ErrorCode.RATE_LIMITED,
    ErrorCode.NETWORK_ERROR,
    ErrorCode.TIMEOUT,
    ErrorCode.UNKNOWN,
})


# ============================================================================
# Validation errors
# ============================================================================

def invalid_params_error(message: str, details: str) -> FlightSearchError:
    return FlightSearchError(
        code=ErrorCode.INVALID_PARAMS,
        message=message,
        details={"reason": details},
        suggested_action=details,
    )


def invalid_airport_error(airport_code: str, field: str = "airport") -> FlightSearchError:
    """``field`` names the request field holding the bad code (origin/destination)."""
    return FlightSearchError(
        code=ErrorCode.INVALID_AIRPORT,
        message=f"{field.capitalize()} '{airport_code}' is not a 3-letter IATA code",
        details={"field": field, "value": airport_code},
        suggested_action="Airport codes must be 3-letter IATA codes (e.g., MAD, BCN)",
    )


def invalid_date_error(date_str: str, reason: str = "Use YYYY-MM-DD format") -> FlightSearchError:
    return FlightSearchError(
        code=ErrorCode.INVALID_DATE,
        message=f"Date '{date_str}' rejected: {reason}",
        details={"value": date_str, "reason": reason},
        suggested_action="Use YYYY-MM-DD format with a date that is not in the past",
    )


__all__ = [
    "ErrorCode",
    "FALLBACK_ERROR_CODES",
    "RETRYABLE_CODES",
    "FilterStateError",
    "FlightSearchError",
    "FlightAPIException",
    "invalid_params_error",
    "invalid_airport_error",
    "invalid_date_error",
]
