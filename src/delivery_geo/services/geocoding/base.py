"""Provider-agnostic geocoding interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ...models.domain import Coordinate


class GeocodingProvider(ABC):
    """One external geocoding service in the resolver's fallback chain."""

    name: str = "provider"

    @property
    def available(self) -> bool:
        """False when the provider cannot be called at all, e.g. missing credentials."""
        return True

    @abstractmethod
    async def attempt(self, query: str) -> Optional[Coordinate]:
        """Return the first candidate's coordinate, or None for an empty result.

        Raises ProviderUnavailable on errors, timeouts and non-success statuses.
        """

    async def reverse(self, coordinate: Coordinate) -> Optional[str]:
        return None
