"""
yuko - async client for a Discord-compatible REST API, dood!

Core pieces:
- RESTManager: rate-limited request dispatcher (per-route buckets + global limit)
- Collection: bounded in-memory entity cache with stable identity
- Client: caches + dispatcher + gateway event router
"""

from .client import Client
from .constants import VERSION, ChannelType, GatewayEvent, Permissions
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    ForbiddenError,
    InvalidArgumentError,
    MethodNotAllowedError,
    NetworkError,
    NotFoundError,
    RateLimitExceededError,
    RequestError,
    ServerError,
    YukoError,
)
from .rest import CacheConfig, Ratelimit, RESTConfig, RESTManager, Route
from .structures import Base, Channel, Guild, Member, Message, Role, User
from .utils import Collection

__version__ = VERSION

__all__ = [
    "VERSION",
    "AuthenticationError",
    "Base",
    "CacheConfig",
    "Channel",
    "ChannelType",
    "Client",
    "Collection",
    "ConfigurationError",
    "ForbiddenError",
    "GatewayEvent",
    "Guild",
    "InvalidArgumentError",
    "Member",
    "Message",
    "MethodNotAllowedError",
    "NetworkError",
    "NotFoundError",
    "Permissions",
    "RESTConfig",
    "RESTManager",
    "RateLimitExceededError",
    "Ratelimit",
    "RequestError",
    "Role",
    "Route",
    "ServerError",
    "User",
    "YukoError",
]
