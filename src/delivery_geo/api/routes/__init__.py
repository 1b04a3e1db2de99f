"""Route group exports."""

from . import estimates, geocoding, health, tracking

__all__ = ["estimates", "geocoding", "health", "tracking"]
