"""Per-order bookkeeping of running route estimators."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from ...models.domain import Coordinate
from .base import RoutingProvider
from .estimator import RouteEstimator

logger = logging.getLogger(__name__)


class TrackingRegistry:
    """Owns one RouteEstimator per tracked order and tears them down on shutdown."""

    def __init__(self, router_factory: Callable[[], RoutingProvider], **estimator_options: Any) -> None:
        self._router_factory = router_factory
        self._estimator_options = estimator_options
        self._estimators: Dict[str, RouteEstimator] = {}

    def __contains__(self, order_id: str) -> bool:
        return order_id in self._estimators

    def __len__(self) -> int:
        return len(self._estimators)

    def start(
        self,
        order_id: str,
        *,
        shop: Optional[Coordinate],
        customer: Optional[Coordinate],
        driver: Optional[Coordinate] = None,
        awaiting_pickup: bool = False,
    ) -> RouteEstimator:
        """Begin tracking ``order_id``, or update the inputs of an existing tracker."""

        estimator = self._estimators.get(order_id)
        if estimator is None:
            estimator = RouteEstimator(
                self._router_factory(),
                shop=shop,
                customer=customer,
                driver=driver,
                awaiting_pickup=awaiting_pickup,
                label=order_id,
                **self._estimator_options,
            )
            self._estimators[order_id] = estimator
            logger.info(f"Started tracking order {order_id}")
        else:
            estimator.set_endpoints(shop, customer)
            estimator.set_awaiting_pickup(awaiting_pickup)
            estimator.update_driver(driver)
        estimator.start()
        return estimator

    def get(self, order_id: str) -> RouteEstimator:
        try:
            return self._estimators[order_id]
        except KeyError:
            raise KeyError(f"Order {order_id} is not being tracked") from None

    def update_driver(self, order_id: str, driver: Optional[Coordinate]) -> RouteEstimator:
        estimator = self.get(order_id)
        estimator.update_driver(driver)
        return estimator

    async def stop(self, order_id: str) -> None:
        estimator = self._estimators.pop(order_id, None)
        if estimator is None:
            raise KeyError(f"Order {order_id} is not being tracked")
        await estimator.stop()
        logger.info(f"Stopped tracking order {order_id}")

    async def shutdown(self) -> None:
        estimators, self._estimators = self._estimators, {}
        for estimator in estimators.values():
            await estimator.stop()
        if estimators:
            logger.info(f"Stopped {len(estimators)} route estimators")
