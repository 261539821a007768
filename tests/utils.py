"""
Test utility functions and helpers.

This module provides payload builders and a scripted fake API served through
httpx.MockTransport, shared by the cross-module workflow tests.
"""

import json
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

import httpx

API_PREFIX = "/api/v10"

# ============================================================================
# Payload builders
# ============================================================================


def makeUser(userId: str, username: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    """Create a user payload."""
    return {"id": userId, "username": username or f"user{userId}", "discriminator": "0", **kwargs}


def makeMember(userId: str, roles: Optional[List[str]] = None, **kwargs) -> Dict[str, Any]:
    """Create a guild member payload (id lives in the nested user)."""
    return {"user": makeUser(userId), "roles": roles or [], "joined_at": "2024-01-01T00:00:00+00:00", **kwargs}


def makeGuild(guildId: str, memberIds: List[str], channelIds: List[str], **kwargs) -> Dict[str, Any]:
    """Create a GUILD_CREATE style payload with members, roles and channels."""
    return {
        "id": guildId,
        "name": f"guild{guildId}",
        "owner_id": memberIds[0] if memberIds else None,
        "member_count": len(memberIds),
        "roles": [{"id": guildId, "name": "@everyone", "permissions": "0", "position": 0}],
        "members": [makeMember(memberId) for memberId in memberIds],
        "channels": [{"id": channelId, "type": 0, "name": f"channel{channelId}"} for channelId in channelIds],
        **kwargs,
    }


def makeMessage(messageId: str, channelId: str, authorId: str, content: str = "hello") -> Dict[str, Any]:
    """Create a message payload."""
    return {
        "id": messageId,
        "channel_id": channelId,
        "author": makeUser(authorId),
        "content": content,
        "timestamp": "2024-01-01T00:00:00+00:00",
    }


# ============================================================================
# Fake API
# ============================================================================

Reply = httpx.Response | Exception | Callable[[httpx.Request], httpx.Response]


class ScriptedApi:
    """
    Fake REST API for httpx.MockTransport.

    Replies are scripted per (method, path): each request pops the next reply
    of its route, the last one repeats. Unscripted routes answer 404.

    Example:
        api = ScriptedApi()
        api.script("GET", "/users/1", httpx.Response(429, json={"retry_after": 0.1}), jsonReply({"id": "1"}))
        client = Client("token", transport=api.transport)
    """

    def __init__(self):
        self.scripts: Dict[Tuple[str, str], Deque[Reply]] = {}
        self.requests: List[httpx.Request] = []
        self.transport = httpx.MockTransport(self.handle)

    def script(self, method: str, path: str, *replies: Reply) -> None:
        self.scripts[(method, API_PREFIX + path)] = deque(replies)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        replies = self.scripts.get((request.method, request.url.path))
        if not replies:
            return httpx.Response(404, json={"code": 0, "message": "404: Not Found"})

        reply = replies.popleft() if len(replies) > 1 else replies[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        return reply

    def paths(self) -> List[str]:
        """Requested paths without the API prefix, in order."""
        return [request.url.path.removeprefix(API_PREFIX) for request in self.requests]

    def bodies(self) -> List[Any]:
        return [json.loads(request.content) if request.content else None for request in self.requests]


def jsonReply(body: Any, status: int = 200, headers: Optional[Dict[str, str]] = None) -> Callable:
    """Reply building a fresh JSON response per request."""

    def reply(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=body, headers=headers)

    return reply


def echoReply(extra: Optional[Dict[str, Any]] = None) -> Callable:
    """Reply echoing the JSON body of the request, merged with ``extra``."""

    def reply(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else {}
        return httpx.Response(200, json={**body, **(extra or {})})

    return reply
