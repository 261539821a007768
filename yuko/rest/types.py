"""Type definitions for REST and cache configuration."""

import sys
from typing import NotRequired

if sys.version_info >= (3, 14):
    from typing import TypedDict
else:
    from typing_extensions import TypedDict


class RESTConfig(TypedDict, closed=False):
    """Configuration of a RESTManager (the ``[rest]`` config table).

    Attributes:
        baseUrl: API base URL
        timeout: Request timeout in seconds
        maxRetries: Retries allowed after the first attempt of a request
        retryBackoffFactor: Backoff factor for 5xx/network retries
        globalLimit: Requests per global window
        globalWindow: Global window length in seconds
        userAgent: User-Agent header value
    """

    baseUrl: NotRequired[str]
    timeout: NotRequired[int]
    maxRetries: NotRequired[int]
    retryBackoffFactor: NotRequired[float]
    globalLimit: NotRequired[int]
    globalWindow: NotRequired[float]
    userAgent: NotRequired[str]


class CacheConfig(TypedDict, closed=False):
    """Collection limits of a Client (the ``[cache]`` config table).

    Missing key means unlimited, except ``messages`` which defaults to 100.
    ``0`` disables caching for the collection.
    """

    users: NotRequired[int]
    guilds: NotRequired[int]
    channels: NotRequired[int]
    messages: NotRequired[int]
