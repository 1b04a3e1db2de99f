"""Delivery charge services."""

from .service import estimate_all, estimate_for_shop, shop_from_record

__all__ = [
    "estimate_all",
    "estimate_for_shop",
    "shop_from_record",
]
