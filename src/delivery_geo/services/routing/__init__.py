"""Routing services: providers, the live route estimator and its registry."""

from .base import RoutingChain, RoutingProvider
from .estimator import EstimatorState, RouteEstimator
from .factory import create_routing_chain
from .google_directions import GoogleDirectionsProvider
from .osrm_client import OSRMClient, decode_polyline
from .registry import TrackingRegistry

__all__ = [
    "EstimatorState",
    "GoogleDirectionsProvider",
    "OSRMClient",
    "RouteEstimator",
    "RoutingChain",
    "RoutingProvider",
    "TrackingRegistry",
    "create_routing_chain",
    "decode_polyline",
]
