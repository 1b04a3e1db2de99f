"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..dependencies import get_registry, get_resolver
from ...services.geocoding import GeocodingResolver
from ...services.routing import TrackingRegistry

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/providers", status_code=status.HTTP_200_OK)
def health_providers(
    resolver: GeocodingResolver = Depends(get_resolver),
    registry: TrackingRegistry = Depends(get_registry),
) -> dict:
    """Report which geocoding providers are configured and how many orders are tracked."""
    return {
        "geocoding": [
            {"provider": provider.name, "available": provider.available} for provider in resolver.providers
        ],
        "tracked_orders": len(registry),
    }


@router.get("/health/osrm", status_code=status.HTTP_200_OK)
async def health_osrm() -> dict:
    """Check OSRM service health."""
    from ...services.routing.osrm_client import check_health

    return {"service": "osrm", "healthy": await check_health()}
