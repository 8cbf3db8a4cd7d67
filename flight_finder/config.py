"""
Configuration management for flight-finder.

This module provides centralized configuration for the library,
supporting environment variables, .env files, and programmatic configuration.

Usage:
    >>> from flight_finder.config import get_config, configure
    >>>
    >>> # Get current config
    >>> config = get_config()
    >>> print(config.provider)

    >>> # Update config programmatically
    >>> configure(use_mock=True, cache_ttl_seconds=60)
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .types import MAX_COMPARISON, ProviderType


class FlightFinderConfig(BaseSettings):
    """
    Configuration for flight-finder.

    Settings can be provided via:
    1. Environment variables (prefixed with FLIGHT_FINDER_)
    2. .env file
    3. Direct instantiation

    Example:
        Set via environment:
        $ export FLIGHT_FINDER_USE_MOCK=true
        $ export FLIGHT_FINDER_SERPAPI_API_KEY=...

        Or in code:
        >>> from flight_finder.config import configure
        >>> configure(use_mock=True)
    """

    # Provider selection
    provider: Optional[ProviderType] = Field(
        default=None,
        description="Explicit provider; resolved from credentials when unset"
    )
    use_mock: bool = Field(
        default=False,
        description="Always answer searches with sample data"
    )
    serpapi_api_key: Optional[str] = Field(
        default=None,
        description="SerpApi key for the Google Flights engine"
    )
    amadeus_api_key: Optional[str] = Field(
        default=None,
        description="Amadeus self-service API key"
    )
    amadeus_api_secret: Optional[str] = Field(
        default=None,
        description="Amadeus self-service API secret"
    )

    # Search cache
    cache_ttl_seconds: int = Field(
        default=300,
        ge=0,
        le=86400,
        description="How long a search result stays cached"
    )
    cache_max_entries: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Maximum cached searches before the oldest is evicted"
    )

    # Retry settings
    max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Maximum number of retry attempts for retryable provider errors"
    )
    retry_base_delay: float = Field(
        default=0.5,
        ge=0.0,
        le=30.0,
        description="Base delay between retries in seconds"
    )
    retry_max_delay: float = Field(
        default=10.0,
        ge=0.0,
        le=300.0,
        description="Maximum delay between retries in seconds"
    )
    retry_exponential_base: float = Field(
        default=2.0,
        ge=1.0,
        le=4.0,
        description="Exponential base for backoff calculation"
    )
    retry_jitter: bool = Field(
        default=True,
        description="Add random jitter to retry delays"
    )

    # Session state
    max_comparison: int = Field(
        default=MAX_COMPARISON,
        ge=1,
        le=10,
        description="Capacity of the comparison set"
    )
    history_max_items: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Search history entries kept per session"
    )
    favorites_max_items: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Favorite flights kept per session"
    )

    # HTTP API
    api_key: Optional[str] = Field(
        default=None,
        description="Require this value in the X-API-Key header when set"
    )
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable per-client rate limiting"
    )
    rate_limit_requests: int = Field(
        default=60,
        ge=1,
        le=10000,
        description="Maximum requests per client per window"
    )
    rate_limit_window_seconds: int = Field(
        default=60,
        ge=1,
        le=3600,
        description="Rate limit time window in seconds"
    )
    cors_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed CORS origins"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    model_config = SettingsConfigDict(
        env_prefix="FLIGHT_FINDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Global configuration instance
_config: Optional[FlightFinderConfig] = None


def get_config() -> FlightFinderConfig:
    """
    Get the global configuration instance.

    Creates a new instance from environment variables on first call,
    then returns the cached instance.

    Returns:
        FlightFinderConfig instance

    Example:
        >>> config = get_config()
        >>> print(config.cache_ttl_seconds)
        300
    """
    global _config
    if _config is None:
        _config = FlightFinderConfig()
    return _config


def configure(**kwargs) -> FlightFinderConfig:
    """
    Update global configuration with new values.

    Creates a new configuration instance with the provided values,
    falling back to current values for unspecified options.

    Args:
        **kwargs: Configuration values to set

    Returns:
        Updated FlightFinderConfig instance

    Example:
        >>> configure(max_retries=0, use_mock=True)
        >>> get_config().use_mock
        True
    """
    global _config

    current_dict = get_config().model_dump()
    current_dict.update(kwargs)
    _config = FlightFinderConfig(**current_dict)

    return _config


def reset_config() -> None:
    """
    Reset configuration to defaults.

    Clears the cached config so the next get_config() call
    will reload from environment variables.
    """
    global _config
    _config = None


__all__ = [
    "FlightFinderConfig",
    "get_config",
    "configure",
    "reset_config",
]
