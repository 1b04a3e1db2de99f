"""Routing provider contract and the ordered fallback chain."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Sequence

from ...exceptions import ProviderUnavailable
from ...models.domain import Coordinate, RouteResult

logger = logging.getLogger(__name__)


class RoutingProvider(ABC):
    """One external driving-directions service."""

    name: str = "provider"

    @property
    def available(self) -> bool:
        return True

    @abstractmethod
    async def attempt(self, waypoints: Sequence[Coordinate]) -> RouteResult:
        """Route through ``waypoints`` in order (origin first, destination last).

        Raises ProviderUnavailable on errors, timeouts and unroutable input.
        """


class RoutingChain(RoutingProvider):
    """Try providers in priority order and return the first successful route."""

    name = "chain"

    def __init__(self, providers: Sequence[RoutingProvider]) -> None:
        self.providers = list(providers)

    @property
    def available(self) -> bool:
        return any(provider.available for provider in self.providers)

    async def attempt(self, waypoints: Sequence[Coordinate]) -> RouteResult:
        if len(waypoints) < 2:
            raise ValueError("At least two waypoints are required to compute a route.")

        failures: list[str] = []
        for provider in self.providers:
            if not provider.available:
                logger.debug(f"Skipping routing provider {provider.name}: not configured")
                continue
            try:
                result = await provider.attempt(waypoints)
            except ProviderUnavailable as exc:
                logger.warning(f"Routing provider {provider.name} failed: {exc.reason}")
                failures.append(str(exc))
                continue
            logger.debug(
                f"Routing provider {provider.name} returned {result.distance_text} / {result.duration_text}"
            )
            return result

        reason = "; ".join(failures) if failures else "no routing provider configured"
        raise ProviderUnavailable(self.name, reason)
