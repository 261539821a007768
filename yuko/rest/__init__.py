"""
REST layer: routes, rate-limit buckets and the request dispatcher.
"""

from .manager import RESTManager
from .ratelimit import Ratelimit
from .route import Route
from .types import CacheConfig, RESTConfig

__all__ = [
    "CacheConfig",
    "RESTConfig",
    "RESTManager",
    "Ratelimit",
    "Route",
]
