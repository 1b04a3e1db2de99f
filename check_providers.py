#!/usr/bin/env python3
"""Script to verify geocoding and routing provider connectivity."""

import asyncio
import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from delivery_geo.config import settings
from delivery_geo.models.domain import Coordinate
from delivery_geo.services.geocoding import create_geocoding_providers
from delivery_geo.services.routing import create_routing_chain

SAMPLE_ADDRESS = "Connaught Place, New Delhi"
SAMPLE_ROUTE = [Coordinate(28.6315, 77.2167), Coordinate(28.6129, 77.2295)]


async def check_geocoding() -> int:
    failures = 0
    for provider in create_geocoding_providers():
        if not provider.available:
            print(f"   [SKIP] {provider.name}: not configured")
            continue
        try:
            coordinate = await provider.attempt(SAMPLE_ADDRESS)
        except Exception as e:
            print(f"   [ERROR] {provider.name}: {e}")
            failures += 1
            continue
        if coordinate is None:
            print(f"   [WARN] {provider.name}: no results for '{SAMPLE_ADDRESS}'")
        else:
            print(f"   [OK] {provider.name}: {coordinate.latitude:.5f}, {coordinate.longitude:.5f}")
    return failures


async def check_routing() -> int:
    failures = 0
    for provider in create_routing_chain().providers:
        if not provider.available:
            print(f"   [SKIP] {provider.name}: not configured")
            continue
        try:
            route = await provider.attempt(SAMPLE_ROUTE)
        except Exception as e:
            print(f"   [ERROR] {provider.name}: {e}")
            failures += 1
            continue
        print(f"   [OK] {provider.name}: {route.distance_text}, {route.duration_text}")
    return failures


async def main() -> int:
    print("=" * 60)
    print("Provider Connection Test")
    print("=" * 60)
    print()

    print("1. Configuration")
    print(f"   Geocoding order: {', '.join(settings.geocoding_providers)}")
    print(f"   Routing order:   {', '.join(settings.routing_providers)}")
    print(f"   OSRM Base URL:   {settings.osrm_base_url or 'not set'}")
    print()

    print("2. Geocoding providers...")
    failures = await check_geocoding()
    print()

    print("3. Routing providers...")
    failures += await check_routing()
    print()

    print("=" * 60)
    if failures:
        print(f"[FAILED] {failures} provider(s) unreachable")
        return 1
    print("[SUCCESS] All configured providers answered")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
