"""Factory for routing providers."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ...config import settings
from .base import RoutingChain, RoutingProvider
from .google_directions import GoogleDirectionsProvider
from .osrm_client import OSRMClient

logger = logging.getLogger(__name__)

PROVIDERS: dict[str, type[RoutingProvider]] = {
    OSRMClient.name: OSRMClient,
    GoogleDirectionsProvider.name: GoogleDirectionsProvider,
}


def create_routing_chain(names: Optional[Sequence[str]] = None) -> RoutingChain:
    providers: list[RoutingProvider] = []
    for name in names or settings.routing_providers:
        provider_cls = PROVIDERS.get(name.lower())
        if provider_cls is None:
            logger.warning(f"Unknown routing provider '{name}' ignored")
            continue
        providers.append(provider_cls())
    return RoutingChain(providers)
