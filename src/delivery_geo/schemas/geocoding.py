"""Geocoding request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from .common import CoordinateModel


class AddressComponents(BaseModel):
    street: Optional[str] = None
    landmark: Optional[str] = None
    area: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None


class GeocodeRequest(BaseModel):
    address: Optional[str] = Field(default=None, description="Free-text address.")
    components: Optional[AddressComponents] = Field(default=None, description="Structured address.")
    providers: Optional[List[str]] = Field(
        default=None,
        description="Provider names to try, in priority order; defaults to every configured provider.",
    )

    @model_validator(mode="after")
    def _require_one(self) -> "GeocodeRequest":
        if self.address is None and self.components is None:
            raise ValueError("Either 'address' or 'components' is required.")
        return self


class ProviderAttemptModel(BaseModel):
    provider: str
    outcome: str
    detail: str = ""


class GeocodeResponse(BaseModel):
    latitude: float
    longitude: float
    source: str
    is_default: bool
    attempts: List[ProviderAttemptModel]


class ReverseGeocodeResponse(BaseModel):
    coordinate: CoordinateModel
    address: Optional[str]
