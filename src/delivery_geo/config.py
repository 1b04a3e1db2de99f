"""Application configuration and settings management."""

from typing import Annotated, Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .models.domain import ChargeTier, validate_tiers

# Env values are parsed by the validators below, not JSON-decoded up front.
StrTuple = Annotated[tuple[str, ...], NoDecode]
TierTable = Annotated[tuple[tuple[Optional[float], int], ...], NoDecode]


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="DGEO_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Delivery Geo Estimator API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root logging level applied by create_app.")
    frontend_allowed_origins: StrTuple = Field(
        default=("http://localhost:3000", "http://127.0.0.1:3000"),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Geocoding
    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="Google Maps Platform key used for geocoding and directions.",
    )
    google_geocode_url: str = "https://maps.googleapis.com/maps/api/geocode/json"
    google_directions_url: str = "https://maps.googleapis.com/maps/api/directions/json"
    nominatim_base_url: str = "https://nominatim.openstreetmap.org"
    nominatim_user_agent: str = Field(
        default="DeliveryGeo/1.0",
        description="Nominatim usage policy requires an identifying User-Agent.",
    )
    geocoding_providers: StrTuple = Field(
        default=("google", "nominatim"),
        description="Geocoding providers in priority order.",
    )
    geocoding_timeout_seconds: float = Field(default=5.0, gt=0.0)
    geocode_country_code: str = "in"
    geocode_country_name: str = "India"
    geocode_cache_size: int = Field(default=256, ge=0)
    default_latitude: float = Field(default=28.6139, ge=-90.0, le=90.0)
    default_longitude: float = Field(default=77.2090, ge=-180.0, le=180.0)

    # Pricing
    default_shop_charge: int = Field(
        default=30,
        ge=0,
        description="Charge applied to shops whose coordinates are missing or unusable.",
    )
    charge_tiers: TierTable = Field(
        default=((2.0, 20), (5.0, 30), (10.0, 45), (15.0, 60), (25.0, 80), (None, 100)),
        description="(max distance km, charge) pairs; the last tier is unbounded.",
    )
    max_plausible_distance_km: float = Field(
        default=20000.0,
        gt=0.0,
        description="Distances above this are rejected as bad input data.",
    )

    # Routing
    routing_providers: StrTuple = Field(
        default=("osrm", "google"),
        description="Routing providers in priority order.",
    )
    osrm_base_url: Optional[str] = Field(
        default="https://router.project-osrm.org",
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile to use when computing travel times.",
    )
    routing_timeout_seconds: float = Field(default=10.0, gt=0.0)
    route_refresh_seconds: float = Field(
        default=60.0,
        gt=0.0,
        description="Cadence at which active deliveries re-query the routing provider.",
    )
    driver_movement_threshold_km: float = Field(
        default=0.0,
        ge=0.0,
        description="Driver moves larger than this trigger an immediate route refresh.",
    )

    @field_validator("frontend_allowed_origins", "geocoding_providers", "routing_providers", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("charge_tiers", mode="before")
    @classmethod
    def _parse_tiers_from_env(cls, value: Any) -> Any:
        """Accept a JSON array of [max_km, charge] pairs from the environment."""
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValueError(f"charge_tiers must be a JSON array of pairs: {exc}") from exc
            return tuple(tuple(pair) for pair in parsed)
        return value

    @field_validator("charge_tiers")
    @classmethod
    def _check_tier_order(cls, value: tuple[tuple[Optional[float], int], ...]) -> tuple[tuple[Optional[float], int], ...]:
        validate_tiers(tuple(ChargeTier(max_distance_km=bound, charge=charge) for bound, charge in value))
        return value


settings = Settings()
