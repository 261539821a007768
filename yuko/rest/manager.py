"""
REST Manager

This module provides the RESTManager class: the rate-limited request
dispatcher every REST call of the library goes through.

Pacing:
    - Requests are grouped into buckets by Route.bucket. Each bucket has an
      asyncio.Lock held for the whole lifecycle of a request (waits and
      retries included), so requests of the same bucket run strictly in FIFO
      submission order, while different buckets run concurrently.
    - Before each attempt the bucket's Ratelimit is checked and, when it is
      exhausted, the request sleeps until the bucket resets.
    - Buckets with no pending requests are forgotten once their window is
      over, so state for one-off channels and guilds doesn't pile up.
    - A global Ratelimit shared by all buckets is checked under its own lock;
      while it is exhausted every bucket waits.

Failures:
    - 429: the bucket (or the global limit) is locked for retry_after and the
      request is retried
    - 5xx and network errors: retried with exponential backoff
    - other 4xx: raised immediately
    All retryable paths share one per-request attempt counter; past
    ``maxRetries`` the failure is raised to the caller.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx

from ..constants import (
    API_BASE_URL,
    AUDIT_LOG_REASON_HEADER,
    AUTH_HEADER,
    AUTH_PREFIX_BEARER,
    AUTH_PREFIX_BOT,
    CONTENT_TYPE_FORM_DATA,
    CONTENT_TYPE_FORM_URLENCODED,
    CONTENT_TYPE_JSON,
    DEFAULT_RETRY_AFTER,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    GLOBAL_RATE_LIMIT,
    GLOBAL_RATE_LIMIT_WINDOW,
    HEADER_RATELIMIT_GLOBAL,
    HEADER_RATELIMIT_SCOPE,
    HEADER_RETRY_AFTER,
    HTTP_DELETE,
    HTTP_GET,
    MAX_RETRIES,
    RETRY_BACKOFF_FACTOR,
)
from ..exceptions import (
    ConfigurationError,
    InvalidArgumentError,
    NetworkError,
    RateLimitExceededError,
    ServerError,
    YukoError,
    parseApiError,
)
from ..utils.common import jsonDumps
from .ratelimit import Ratelimit
from .route import Route
from .types import RESTConfig

logger = logging.getLogger(__name__)


class RESTManager:
    """Rate-limited async dispatcher for REST API requests, dood!

    Supports async context manager usage for proper resource cleanup:

    Example:
        >>> async with RESTManager("your_bot_token") as rest:
        ...     me = await rest.request("GET", "/users/@me")
        ...     await rest.request("POST", f"/channels/{channelId}/messages", {"content": "Hi!"})

    Attributes:
        token: Bot token used for the Authorization header
        baseUrl: Base URL for the API
        timeout: Request timeout in seconds
        maxRetries: Retries allowed after the first attempt of a request
        retryBackoffFactor: Backoff factor for 5xx/network retry delays
        userAgent: User-Agent header value
        globalRatelimit: Global limit shared by all buckets
    """

    __slots__ = (
        "token",
        "baseUrl",
        "timeout",
        "maxRetries",
        "retryBackoffFactor",
        "userAgent",
        "globalRatelimit",
        "_ratelimits",
        "_locks",
        "_pending",
        "_globalLock",
        "_httpClient",
        "_transport",
    )

    def __init__(
        self,
        token: str,
        baseUrl: str = API_BASE_URL,
        timeout: int = DEFAULT_TIMEOUT,
        maxRetries: int = MAX_RETRIES,
        retryBackoffFactor: float = RETRY_BACKOFF_FACTOR,
        globalLimit: int = GLOBAL_RATE_LIMIT,
        globalWindow: float = GLOBAL_RATE_LIMIT_WINDOW,
        userAgent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the REST manager.

        Args:
            token: Bot token (``Bot `` prefix is added unless the token
                already starts with ``Bot `` or ``Bearer ``)
            baseUrl: Base URL for the API
            timeout: Request timeout in seconds
            maxRetries: Retries allowed after the first attempt of a request
            retryBackoffFactor: Backoff factor for retry delays
            globalLimit: Requests allowed per global window
            globalWindow: Global window length in seconds
            userAgent: User-Agent header value
            transport: Custom httpx transport (e.g. httpx.MockTransport in tests)

        Raises:
            ConfigurationError: If token is empty or limits are invalid
        """
        if not token or not token.strip():
            raise ConfigurationError("Token cannot be empty")
        if maxRetries < 0:
            raise ConfigurationError(f"maxRetries must be non-negative, got {maxRetries}")
        try:
            globalRatelimit = Ratelimit(limit=globalLimit, remaining=globalLimit, window=globalWindow)
        except ValueError as e:
            raise ConfigurationError(f"Invalid global rate limit: {e}") from e

        self.token = token.strip()
        self.baseUrl = baseUrl.rstrip("/")
        self.timeout = timeout
        self.maxRetries = maxRetries
        self.retryBackoffFactor = retryBackoffFactor
        self.userAgent = userAgent
        self.globalRatelimit = globalRatelimit
        self._ratelimits: Dict[str, Ratelimit] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._pending: Dict[str, int] = {}
        self._globalLock = asyncio.Lock()
        self._httpClient: Optional[httpx.AsyncClient] = None
        self._transport = transport

        logger.debug(f"RESTManager initialized for {self.baseUrl}")

    @classmethod
    def fromConfig(
        cls,
        token: str,
        config: Optional[RESTConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "RESTManager":
        """Create RESTManager from the ``[rest]`` configuration table."""
        config = config or {}
        return cls(
            token,
            baseUrl=config.get("baseUrl", API_BASE_URL),
            timeout=config.get("timeout", DEFAULT_TIMEOUT),
            maxRetries=config.get("maxRetries", MAX_RETRIES),
            retryBackoffFactor=config.get("retryBackoffFactor", RETRY_BACKOFF_FACTOR),
            globalLimit=config.get("globalLimit", GLOBAL_RATE_LIMIT),
            globalWindow=config.get("globalWindow", GLOBAL_RATE_LIMIT_WINDOW),
            userAgent=config.get("userAgent", DEFAULT_USER_AGENT),
            transport=transport,
        )

    async def __aenter__(self) -> "RESTManager":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    @property
    def authorization(self) -> str:
        """Authorization header value"""
        if self.token.startswith(AUTH_PREFIX_BOT) or self.token.startswith(AUTH_PREFIX_BEARER):
            return self.token
        return AUTH_PREFIX_BOT + self.token

    def _getHttpClient(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with proper configuration.

        Returns:
            Configured httpx.AsyncClient instance
        """
        if self._httpClient is None or self._httpClient.is_closed:
            self._httpClient = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={
                    "User-Agent": self.userAgent,
                    AUTH_HEADER: self.authorization,
                },
                transport=self._transport,
            )
            logger.debug("Created new HTTP client")

        return self._httpClient

    async def aclose(self) -> None:
        """Close the HTTP client and cleanup resources."""
        if self._httpClient and not self._httpClient.is_closed:
            await self._httpClient.aclose()
            logger.debug("HTTP client closed")

    def route(self, method: str, endpoint: str) -> Route:
        """Build the route of a request.

        Raises:
            InvalidArgumentError: On unknown method or unroutable endpoint
        """
        return Route(method, endpoint)

    @property
    def globallyLimited(self) -> bool:
        """Whether the global limit is exhausted right now"""
        return self.globalRatelimit.isExhausted()

    def getRatelimit(self, bucket: str) -> Ratelimit:
        """Get the rate-limit state of a bucket, creating an idle one on first use."""
        ratelimit = self._ratelimits.get(bucket)
        if ratelimit is None:
            ratelimit = Ratelimit()
            self._ratelimits[bucket] = ratelimit
            logger.debug(f"Auto-registered bucket '{bucket}', dood!")
        return ratelimit

    def _getLock(self, bucket: str) -> asyncio.Lock:
        lock = self._locks.get(bucket)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[bucket] = lock
        return lock

    def getStats(self, bucket: str) -> Dict[str, Any]:
        """
        Get current rate-limit statistics of a bucket.

        Returns:
            Dictionary containing limit, remaining, reset, delay, exhausted,
            bucketHash and queued (requests waiting for the bucket)

        Raises:
            ValueError: If the bucket was never used
        """
        if bucket not in self._ratelimits:
            raise ValueError(f"Bucket '{bucket}' does not exist")

        stats = self._ratelimits[bucket].toDict()
        pending = self._pending.get(bucket, 0)
        lock = self._locks.get(bucket)
        # The lock holder is one of the pending requests
        stats["queued"] = pending - 1 if pending and lock is not None and lock.locked() else pending
        return stats

    def listBuckets(self) -> List[str]:
        """Get list of all known buckets."""
        return list(self._ratelimits.keys())

    def _pruneBuckets(self) -> None:
        """Forget buckets with no pending requests whose window is over."""
        now = time.time()
        for bucket, ratelimit in list(self._ratelimits.items()):
            if self._pending.get(bucket, 0) or not ratelimit.isExpired(now):
                continue
            del self._ratelimits[bucket]
            self._locks.pop(bucket, None)
            self._pending.pop(bucket, None)
            logger.debug(f"Dropped idle bucket '{bucket}'")

    async def request(
        self,
        method: str,
        endpoint: str,
        payload: Any = None,
        contentType: str = CONTENT_TYPE_JSON,
        *,
        reason: Optional[str] = None,
        query: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make a rate-limited API request.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE, PATCH)
            endpoint: API endpoint path with parameters substituted, e.g. ``/channels/1/messages``
            payload: Request body. For GET and DELETE requests it becomes the query string.
                For multipart requests a dict with ``files`` and optional ``payload_json``
            contentType: Content type of the payload
            reason: Audit log reason
            query: Query string parameters

        Returns:
            Decoded response body: JSON data, text, bytes, or None for empty responses

        Raises:
            InvalidArgumentError: On unroutable endpoint or invalid payload
            RateLimitExceededError: If 429 persists after all retries
            ServerError: If 5xx persists after all retries
            NetworkError: If network errors persist after all retries
            RequestError: On other 4xx responses
        """
        route = self.route(method, endpoint)
        kwargs = self._buildRequestKwargs(route, payload, contentType, reason, query)
        return await self._execute(route, kwargs)

    def _buildRequestKwargs(
        self,
        route: Route,
        payload: Any,
        contentType: str,
        reason: Optional[str],
        query: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {}
        headers: Dict[str, str] = {}
        params: Dict[str, Any] = dict(query) if query else {}

        if reason:
            headers[AUDIT_LOG_REASON_HEADER] = quote(reason, safe="")

        if payload is not None:
            if route.method in (HTTP_GET, HTTP_DELETE):
                if not isinstance(payload, dict):
                    raise InvalidArgumentError(f"{route.method} payload must be a dict of query parameters")
                params.update(payload)
            elif contentType == CONTENT_TYPE_JSON:
                kwargs["json"] = payload
            elif contentType == CONTENT_TYPE_FORM_DATA:
                if not isinstance(payload, dict):
                    raise InvalidArgumentError("Multipart payload must be a dict with 'files'")
                kwargs["files"] = payload.get("files") or {}
                if payload.get("payload_json") is not None:
                    kwargs["data"] = {"payload_json": jsonDumps(payload["payload_json"])}
            elif contentType == CONTENT_TYPE_FORM_URLENCODED:
                kwargs["data"] = payload
            else:
                kwargs["content"] = payload
                headers["Content-Type"] = contentType

        if params:
            kwargs["params"] = params
        if headers:
            kwargs["headers"] = headers
        return kwargs

    async def _waitForBucket(self, bucket: str, ratelimit: Ratelimit) -> None:
        if not ratelimit.isExhausted():
            return
        delay = ratelimit.getDelay()
        logger.debug(f"Bucket '{bucket}' exhausted, waiting {delay:.2f} seconds, dood!")
        await asyncio.sleep(delay)
        ratelimit.renew()

    async def _waitForGlobal(self) -> None:
        async with self._globalLock:
            globalRatelimit = self.globalRatelimit
            if globalRatelimit.isExhausted():
                delay = globalRatelimit.getDelay()
                logger.warning(f"Global rate limit reached, waiting {delay:.2f} seconds")
                await asyncio.sleep(delay)
                globalRatelimit.renew()
            elif time.time() >= globalRatelimit.reset:
                globalRatelimit.renew()
            globalRatelimit.consume()

    async def _backoff(self, attempt: int) -> None:
        delay = self.retryBackoffFactor * (2 ** (attempt - 1))
        logger.debug(f"Retrying in {delay} seconds...")
        await asyncio.sleep(delay)

    def _parseRetryAfter(self, response: httpx.Response) -> Tuple[float, bool]:
        """Get retry_after (seconds) and the global flag of a 429 response."""
        retryAfter: Optional[float] = None
        isGlobal = False

        data = self._decodeBody(response)
        if isinstance(data, dict):
            if data.get("retry_after") is not None:
                try:
                    retryAfter = float(data["retry_after"])
                except (TypeError, ValueError):
                    logger.warning(f"Invalid retry_after in 429 body: {data['retry_after']!r}")
            isGlobal = bool(data.get("global", False))

        if retryAfter is None:
            try:
                retryAfter = float(response.headers.get(HEADER_RETRY_AFTER, DEFAULT_RETRY_AFTER))
            except ValueError:
                retryAfter = DEFAULT_RETRY_AFTER

        if response.headers.get(HEADER_RATELIMIT_GLOBAL, "").lower() == "true":
            isGlobal = True
        if response.headers.get(HEADER_RATELIMIT_SCOPE, "").lower() == "global":
            isGlobal = True

        return retryAfter, isGlobal

    def _decodeBody(self, response: httpx.Response) -> Any:
        """Decode an error body, falling back to the text."""
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {"message": response.text or "Unknown error"}

    def _parseResponse(self, response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None

        contentType = response.headers.get("Content-Type", "")
        if contentType.startswith(CONTENT_TYPE_JSON):
            try:
                return response.json()
            except ValueError as e:
                raise YukoError(f"Invalid JSON response: {e}") from e
        if contentType.startswith("text/"):
            return response.text
        return response.content

    async def _execute(self, route: Route, kwargs: Dict[str, Any]) -> Any:
        bucket = route.bucket
        ratelimit = self.getRatelimit(bucket)
        lock = self._getLock(bucket)

        self._pending[bucket] = self._pending.get(bucket, 0) + 1
        try:
            async with lock:
                return await self._runAttempts(route, ratelimit, kwargs)
        finally:
            self._pending[bucket] -= 1
            self._pruneBuckets()

    async def _runAttempts(self, route: Route, ratelimit: Ratelimit, kwargs: Dict[str, Any]) -> Any:
        """Issue the request until it succeeds or the retry budget is spent.

        Must be called with the bucket lock held.
        """
        url = route.url(self.baseUrl)
        attempt = 0

        while True:
            await self._waitForBucket(route.bucket, ratelimit)
            await self._waitForGlobal()

            logger.debug(f"Making {route.method} request to {url} (attempt {attempt + 1})")
            try:
                response = await self._getHttpClient().request(route.method, url, **kwargs)
            except httpx.RequestError as e:
                attempt += 1
                if attempt > self.maxRetries:
                    logger.error(f"{route} failed after {attempt} attempts: {type(e).__name__}#{e}")
                    raise NetworkError(f"Network error: {type(e).__name__}#{e}") from e
                logger.warning(f"Network error on attempt {attempt} of {route}: {type(e).__name__}#{e}")
                await self._backoff(attempt)
                continue

            status = response.status_code
            if not ratelimit.updateFromHeaders(response.headers) and status != 429:
                ratelimit.consume()

            if status == 429:
                retryAfter, isGlobal = self._parseRetryAfter(response)
                (self.globalRatelimit if isGlobal else ratelimit).lockFor(retryAfter)
                attempt += 1
                if attempt > self.maxRetries:
                    logger.error(f"{route} still rate limited after {attempt} attempts")
                    raise RateLimitExceededError(
                        f"Rate limit exceeded for {route} (retry_after={retryAfter}s, global={isGlobal})",
                        response=self._decodeBody(response),
                        retryAfter=retryAfter,
                        isGlobal=isGlobal,
                    )
                logger.warning(
                    f"Rate limited on {route} (attempt {attempt}), "
                    f"retry after {retryAfter}s, global={isGlobal}"
                )
                continue

            if status >= 500:
                attempt += 1
                if attempt > self.maxRetries:
                    logger.error(f"{route} failed after {attempt} attempts: HTTP {status}")
                    raise ServerError(
                        f"Server error {status} on {route}",
                        status=status,
                        response=self._decodeBody(response),
                    )
                logger.warning(f"Server error {status} on attempt {attempt} of {route}")
                await self._backoff(attempt)
                continue

            if status >= 400:
                errorData = self._decodeBody(response)
                logger.warning(f"API error on {route}: {status} {errorData}")
                raise parseApiError(status, errorData)

            logger.debug(f"Request successful: {route}")
            return self._parseResponse(response)
