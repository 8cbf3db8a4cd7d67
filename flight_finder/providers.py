"""
Flight provider registry and resolution.

Providers are registered by type under a factory taking the active
configuration. Only the mock provider ships with this package; adapters for
real upstream APIs plug in through ``register_provider``.

Usage:
    >>> from flight_finder.providers import register_provider
    >>> register_provider("serpapi", lambda config: MySerpApiAdapter(config.serpapi_api_key))
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional, Tuple

from .config import FlightFinderConfig, get_config
from .mock_data import generate_mock_flights
from .schema import Flight, SearchParams
from .types import FlightProvider, ProviderType

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[FlightFinderConfig], FlightProvider]


class MockFlightProvider:
    """Provider answering every search with the sample catalogue."""

    @property
    def provider_name(self) -> str:
        return "mock"

    def is_configured(self) -> bool:
        return True

    def search(self, params: SearchParams) -> List[Flight]:
        logger.debug(f"Generating sample flights for {params.origin}->{params.destination}")
        return generate_mock_flights(params)


_registry: Dict[str, ProviderFactory] = {}
_registry_lock = threading.Lock()


def register_provider(provider_type: ProviderType, factory: ProviderFactory) -> None:
    """
    Register (or replace) the factory for a provider type.

    Args:
        provider_type: "serpapi", "amadeus" or "mock"
        factory: Called with the active config to build the provider
    """
    with _registry_lock:
        _registry[provider_type] = factory
    logger.debug(f"Registered flight provider '{provider_type}'")


def unregister_provider(provider_type: ProviderType) -> None:
    with _registry_lock:
        _registry.pop(provider_type, None)


def available_providers() -> List[str]:
    with _registry_lock:
        return sorted(_registry)


def get_provider(
    provider_type: ProviderType,
    config: Optional[FlightFinderConfig] = None,
) -> Optional[FlightProvider]:
    """Build a registered provider, or None if the type has no factory."""
    with _registry_lock:
        factory = _registry.get(provider_type)
    if factory is None:
        return None
    return factory(config or get_config())


def get_active_provider_type(config: Optional[FlightFinderConfig] = None) -> ProviderType:
    """
    Decide which provider type the configuration asks for.

    Order: explicit ``provider`` setting, ``use_mock``, a SerpApi key, an
    Amadeus key and secret, and finally mock.
    """
    config = config or get_config()
    if config.provider:
        return config.provider
    if config.use_mock:
        return "mock"
    if config.serpapi_api_key:
        return "serpapi"
    if config.amadeus_api_key and config.amadeus_api_secret:
        return "amadeus"
    return "mock"


def get_flight_provider(
    provider_type: Optional[ProviderType] = None,
    config: Optional[FlightFinderConfig] = None,
) -> Tuple[FlightProvider, Optional[str]]:
    """
    Resolve the provider to search with.

    Args:
        provider_type: Overrides the configured resolution when given
        config: Configuration to resolve from (default: global config)

    Returns:
        (provider, warning). The warning is set when the requested type has
        no registered adapter, or is not configured, and the mock provider
        is used instead.
    """
    config = config or get_config()
    requested = provider_type or get_active_provider_type(config)
    provider = get_provider(requested, config)

    if provider is not None and provider.is_configured():
        return provider, None

    reason = "is not available" if provider is None else "is not configured"
    warning = f"Provider '{requested}' {reason}; using sample data"
    logger.warning(warning)
    return MockFlightProvider(), warning


def reset_providers() -> None:
    """Restore the registry to only the built-in mock provider."""
    with _registry_lock:
        _registry.clear()
        _registry["mock"] = lambda config: MockFlightProvider()


reset_providers()


__all__ = [
    "ProviderFactory",
    "MockFlightProvider",
    "register_provider",
    "unregister_provider",
    "available_providers",
    "get_provider",
    "get_active_provider_type",
    "get_flight_provider",
    "reset_providers",
]
