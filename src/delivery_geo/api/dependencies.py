"""Request-scoped access to the long-lived services held on app.state."""

from __future__ import annotations

from fastapi import Request

from ..services.geocoding import GeocodingResolver
from ..services.routing import TrackingRegistry


def get_resolver(request: Request) -> GeocodingResolver:
    return request.app.state.resolver


def get_registry(request: Request) -> TrackingRegistry:
    return request.app.state.registry
