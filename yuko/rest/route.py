"""
Route: HTTP method + endpoint, the key of rate-limit buckets.

Bucketing rule
--------------
Two routes share a rate-limit bucket iff they have the same ``bucket`` key:
the method plus the endpoint path where

- the id right after a top-level ``channels``, ``guilds`` or ``webhooks``
  segment (the major parameter) is kept as is,
- the webhook token following a webhook id is kept as is,
- every other numeric id becomes ``:id``,
- the emoji after ``reactions`` becomes ``:reaction``,
- the interaction token after ``interactions/{id}`` becomes ``:token``.

So ``POST /channels/1/messages`` and ``POST /channels/2/messages`` are
different buckets, while ``PATCH /channels/1/messages/10`` and
``PATCH /channels/1/messages/11`` share one.
"""

import re
from dataclasses import dataclass
from typing import Any, List
from urllib.parse import quote

from ..constants import (
    BUCKET_ID_PLACEHOLDER,
    BUCKET_REACTION_PLACEHOLDER,
    BUCKET_TOKEN_PLACEHOLDER,
    HTTP_METHODS,
    MAJOR_PARAMETER_RESOURCES,
)
from ..exceptions import InvalidArgumentError

_SNOWFLAKE_RE = re.compile(r"^\d+$")
_PLACEHOLDER_RE = re.compile(r"\{[^}]*\}")
_INVALID_PATH_RE = re.compile(r"[\s?#]")


def _normalizeSegments(segments: List[str]) -> List[str]:
    normalized: List[str] = []
    for index, segment in enumerate(segments):
        previous = segments[index - 1] if index > 0 else None

        if index == 1 and segments[0] in MAJOR_PARAMETER_RESOURCES:
            normalized.append(segment)
        elif index == 2 and segments[0] == "webhooks":
            # /webhooks/{id}/{token}
            normalized.append(segment)
        elif previous == "reactions":
            normalized.append(BUCKET_REACTION_PLACEHOLDER)
        elif index >= 2 and segments[index - 2] == "interactions":
            normalized.append(BUCKET_TOKEN_PLACEHOLDER)
        elif _SNOWFLAKE_RE.match(segment):
            normalized.append(BUCKET_ID_PLACEHOLDER)
        else:
            normalized.append(segment)
    return normalized


@dataclass(frozen=True)
class Route:
    """
    Immutable pair (HTTP method, endpoint path with parameters substituted).

    Attributes:
        method: Upper-cased HTTP method
        path: Endpoint path relative to the API base URL, e.g. ``/channels/1/messages``

    Raises:
        InvalidArgumentError: On unknown method or unroutable path
    """

    method: str
    path: str

    def __post_init__(self):
        """Validate and normalize method and path"""
        if not isinstance(self.method, str) or self.method.upper() not in HTTP_METHODS:
            raise InvalidArgumentError(f"Unknown HTTP method: {self.method!r}")
        # frozen dataclass, so bypass __setattr__
        object.__setattr__(self, "method", self.method.upper())

        if not isinstance(self.path, str) or not self.path.startswith("/") or len(self.path) < 2:
            raise InvalidArgumentError(f"Unroutable endpoint: {self.path!r}")
        if _PLACEHOLDER_RE.search(self.path):
            raise InvalidArgumentError(f"Unresolved parameters in endpoint: {self.path!r}")
        if _INVALID_PATH_RE.search(self.path):
            raise InvalidArgumentError(f"Unroutable endpoint: {self.path!r}")
        if "//" in self.path:
            raise InvalidArgumentError(f"Empty segment in endpoint: {self.path!r}")
        object.__setattr__(self, "path", self.path.rstrip("/"))

    @classmethod
    def fromTemplate(cls, method: str, template: str, **params: Any) -> "Route":
        """
        Build a route from an endpoint template.

        Example:
            >>> Route.fromTemplate("GET", "/guilds/{guild_id}/members/{user_id}", guild_id=1, user_id=2).path
            '/guilds/1/members/2'
        """
        try:
            path = template.format_map({k: quote(str(v), safe="") for k, v in params.items()})
        except (KeyError, IndexError, ValueError) as e:
            raise InvalidArgumentError(f"Can't format endpoint {template!r}: {e}") from e
        return cls(method, path)

    @property
    def segments(self) -> List[str]:
        return self.path.strip("/").split("/")

    @property
    def majorParameter(self) -> str | None:
        """Major parameter of the route (guild, channel or webhook id), if any"""
        segments = self.segments
        if len(segments) >= 2 and segments[0] in MAJOR_PARAMETER_RESOURCES:
            return segments[1]
        return None

    @property
    def bucket(self) -> str:
        """Rate-limit bucket key of the route"""
        return f"{self.method}:/" + "/".join(_normalizeSegments(self.segments))

    def url(self, baseUrl: str) -> str:
        """Absolute URL of the route"""
        return baseUrl.rstrip("/") + self.path

    def __str__(self) -> str:
        return f"{self.method} {self.path}"
