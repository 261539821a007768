"""
Yuko Exceptions

This module contains custom exception classes for cache misuse and REST API
failures. Every failure of RESTManager.request() is raised to its caller as
one of these.
"""

import logging
from typing import Any, Dict, Optional

from .constants import (
    ERROR_CODE_CONFIGURATION,
    ERROR_CODE_INVALID_ARGUMENT,
    ERROR_CODE_NETWORK_ERROR,
    ERROR_CODE_RATE_LIMIT_EXCEEDED,
    ERROR_CODE_SERVER_ERROR,
)

logger = logging.getLogger(__name__)


class YukoError(Exception):
    """Base exception class for all yuko errors, dood!

    All other exceptions in this module inherit from this base class.

    Attributes:
        message: Human-readable error message
        code: Error code (API error code or a local one)
        response: Decoded API response data (if available)
    """

    def __init__(
        self,
        message: str,
        code: Optional[Any] = None,
        response: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.response = response
        logger.debug(f"YukoError: {message} (code: {code})")

    def __str__(self) -> str:
        if self.code is not None:
            return f"{self.message} (code: {self.code})"
        return self.message


class InvalidArgumentError(YukoError, ValueError):
    """Raised on malformed input to a Collection (missing identifier)
    or to the REST dispatcher (unroutable endpoint).

    This is a programming error, it is never retried.
    """

    def __init__(
        self,
        message: str,
        code: Optional[Any] = ERROR_CODE_INVALID_ARGUMENT,
        response: Optional[Any] = None,
    ) -> None:
        super().__init__(message, code, response)


class ConfigurationError(YukoError):
    """Raised when the configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        code: Optional[Any] = ERROR_CODE_CONFIGURATION,
        response: Optional[Any] = None,
    ) -> None:
        super().__init__(message, code, response)


class RateLimitExceededError(YukoError):
    """Raised when a request keeps hitting 429 after the retry budget is spent.

    The bucket itself stays usable for future requests.

    Attributes:
        retryAfter: Last retry_after reported by the API, in seconds
        isGlobal: Whether the last 429 was for the global limit
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please try again later.",
        code: Optional[Any] = ERROR_CODE_RATE_LIMIT_EXCEEDED,
        response: Optional[Any] = None,
        retryAfter: float = 0.0,
        isGlobal: bool = False,
    ) -> None:
        super().__init__(message, code, response)
        self.retryAfter = retryAfter
        self.isGlobal = isGlobal


class RequestError(YukoError):
    """Raised on a non-retryable 4xx response.

    Attributes:
        status: HTTP status code
        response: Decoded error body
    """

    def __init__(
        self,
        message: str,
        status: int = 400,
        code: Optional[Any] = None,
        response: Optional[Any] = None,
    ) -> None:
        super().__init__(message, code, response)
        self.status = status

    def __str__(self) -> str:
        return f"HTTP {self.status}: {super().__str__()}"


class AuthenticationError(RequestError):
    """Raised on 401: the token is invalid or missing."""

    def __init__(
        self,
        message: str = "Authentication failed. Check your token.",
        status: int = 401,
        code: Optional[Any] = None,
        response: Optional[Any] = None,
    ) -> None:
        super().__init__(message, status, code, response)


class ForbiddenError(RequestError):
    """Raised on 403: the bot lacks access or permissions for the resource."""

    def __init__(
        self,
        message: str = "Missing access.",
        status: int = 403,
        code: Optional[Any] = None,
        response: Optional[Any] = None,
    ) -> None:
        super().__init__(message, status, code, response)


class NotFoundError(RequestError):
    """Raised on 404: the requested resource is unknown."""

    def __init__(
        self,
        message: str = "Resource not found.",
        status: int = 404,
        code: Optional[Any] = None,
        response: Optional[Any] = None,
    ) -> None:
        super().__init__(message, status, code, response)


class MethodNotAllowedError(RequestError):
    """Raised on 405: the HTTP method is not valid for the endpoint."""

    def __init__(
        self,
        message: str = "Method not allowed for this endpoint.",
        status: int = 405,
        code: Optional[Any] = None,
        response: Optional[Any] = None,
    ) -> None:
        super().__init__(message, status, code, response)


class ServerError(YukoError):
    """Raised when the API keeps answering 5xx after the retry budget is spent.

    Attributes:
        status: Last HTTP status code received
    """

    def __init__(
        self,
        message: str = "Server error. Please try again later.",
        status: int = 500,
        code: Optional[Any] = ERROR_CODE_SERVER_ERROR,
        response: Optional[Any] = None,
    ) -> None:
        super().__init__(message, code, response)
        self.status = status


class NetworkError(YukoError):
    """Raised when network-level failures (connection reset, timeout, DNS)
    persist after the retry budget is spent.
    """

    def __init__(
        self,
        message: str = "Network error occurred.",
        code: Optional[Any] = ERROR_CODE_NETWORK_ERROR,
        response: Optional[Any] = None,
    ) -> None:
        super().__init__(message, code, response)


def parseApiError(statusCode: int, responseData: Any) -> RequestError:
    """Parse a 4xx error response and return the appropriate exception.

    Args:
        statusCode: HTTP status code
        responseData: Decoded response body, usually ``{"code": ..., "message": ...}``

    Returns:
        RequestError subclass matching the status code
    """
    errorCode: Optional[Any] = None
    errorMessage = "Unknown API error"
    if isinstance(responseData, dict):
        errorCode = responseData.get("code")
        errorMessage = responseData.get("message", errorMessage)
    elif isinstance(responseData, str) and responseData:
        errorMessage = responseData

    errorClasses: Dict[int, type[RequestError]] = {
        401: AuthenticationError,
        403: ForbiddenError,
        404: NotFoundError,
        405: MethodNotAllowedError,
    }
    errorClass = errorClasses.get(statusCode)
    if errorClass is not None:
        return errorClass(errorMessage, statusCode, errorCode, responseData)

    return RequestError(errorMessage, statusCode, errorCode, responseData)
