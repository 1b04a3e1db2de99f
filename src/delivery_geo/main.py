"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import estimates, geocoding, health, tracking
from .config import settings
from .services.geocoding import GeocodingResolver, create_resolver
from .services.routing import TrackingRegistry, create_routing_chain


def create_app(
    resolver: Optional[GeocodingResolver] = None,
    registry: Optional[TrackingRegistry] = None,
) -> FastAPI:
    logging.basicConfig(level=settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.registry.shutdown()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.resolver = resolver or create_resolver()
    app.state.registry = registry or TrackingRegistry(create_routing_chain)

    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(estimates.router, prefix=settings.api_prefix)
    app.include_router(geocoding.router, prefix=settings.api_prefix)
    app.include_router(tracking.router, prefix=settings.api_prefix)
    return app


app = create_app()
