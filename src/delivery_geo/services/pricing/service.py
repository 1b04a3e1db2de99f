"""Batch delivery-charge estimation across shops."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Sequence

from ...config import settings
from ...exceptions import ImplausibleDistance, InvalidCoordinate
from ...models.domain import ChargeTier, Coordinate, ShopChargeEstimate, ShopLocation, validate_tiers
from ..geospatial import DEFAULT_CHARGE_TIERS, charge_for_distance, distance

logger = logging.getLogger(__name__)


def shop_from_record(record: Mapping[str, Any]) -> ShopLocation:
    """Build a ShopLocation from a shop record of the order/shop data service.

    Records carry their id as ``_id`` or ``id`` and coordinates under
    ``location`` as ``lat``/``lng``. Unusable coordinates become ``None`` so
    the shop is priced with the fallback charge.
    """

    shop_id = str(record.get("_id") or record.get("id") or "")
    if not shop_id:
        raise ValueError("Shop record has no id.")
    location = record.get("location") or {}
    coordinate = None
    if isinstance(location, Mapping) and location.get("lat") is not None and location.get("lng") is not None:
        try:
            coordinate = Coordinate.parse(location["lat"], location["lng"])
        except InvalidCoordinate as exc:
            logger.warning(f"Ignoring malformed coordinates for shop {shop_id}: {exc}")
    return ShopLocation(id=shop_id, coordinate=coordinate)


def estimate_for_shop(
    customer: Coordinate,
    shop: ShopLocation,
    *,
    tiers: Sequence[ChargeTier] = DEFAULT_CHARGE_TIERS,
    default_charge: int | None = None,
    max_km: float | None = None,
) -> ShopChargeEstimate:
    if tiers is not DEFAULT_CHARGE_TIERS:
        validate_tiers(tiers)
    fallback_charge = settings.default_shop_charge if default_charge is None else default_charge
    if shop.coordinate is None:
        logger.warning(f"Shop {shop.id} has no coordinates; using fallback charge {fallback_charge}")
        return ShopChargeEstimate(shop_id=shop.id, distance_km=0.0, charge=fallback_charge, fallback=True)

    try:
        distance_km = distance(customer, shop.coordinate, max_km=max_km)
    except (InvalidCoordinate, ImplausibleDistance) as exc:
        logger.warning(f"Shop {shop.id} distance unusable ({exc}); using fallback charge {fallback_charge}")
        return ShopChargeEstimate(shop_id=shop.id, distance_km=0.0, charge=fallback_charge, fallback=True)

    return ShopChargeEstimate(
        shop_id=shop.id,
        distance_km=round(distance_km, 1),
        charge=charge_for_distance(distance_km, tiers),
    )


def estimate_all(
    customer: Coordinate,
    shops: Sequence[ShopLocation],
    *,
    tiers: Sequence[ChargeTier] = DEFAULT_CHARGE_TIERS,
    default_charge: int | None = None,
    max_km: float | None = None,
) -> Dict[str, ShopChargeEstimate]:
    """Estimate the delivery charge of every shop against one customer location.

    A shop with missing or unusable coordinates gets ``distance_km=0`` and the
    default charge instead of failing the batch.

    Raises:
        ValueError: if a caller-supplied tier table is not strictly increasing.
    """

    if tiers is not DEFAULT_CHARGE_TIERS:
        validate_tiers(tiers)
    estimates: Dict[str, ShopChargeEstimate] = {}
    for shop in shops:
        estimates[shop.id] = estimate_for_shop(
            customer,
            shop,
            tiers=tiers,
            default_charge=default_charge,
            max_km=max_km,
        )
    fallbacks = sum(1 for estimate in estimates.values() if estimate.fallback)
    logger.info(f"Estimated charges for {len(estimates)} shops ({fallbacks} fallback)")
    return estimates
