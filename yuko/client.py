"""
Client: entity caches plus the REST dispatcher.

The Client owns the ``users``, ``guilds``, ``channels`` and ``messages``
collections and a RESTManager. It has no global state: structures that need
the caches receive the Client explicitly as ``extra``.

Example:
    >>> async with Client("your_bot_token") as client:
    ...     channel = await client.getChannel("123456789012345678")
    ...     message = await client.createMessage(channel.id, "Hello, dood!")
    ...     client.processEvent("GUILD_CREATE", guildPayload)
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import httpx

from .constants import (
    CONTENT_TYPE_FORM_DATA,
    CONTENT_TYPE_JSON,
    DEFAULT_MESSAGE_CACHE_LIMIT,
    HTTP_DELETE,
    HTTP_GET,
    HTTP_PATCH,
    HTTP_POST,
    HTTP_PUT,
    GatewayEvent,
)
from .rest.manager import RESTManager
from .rest.route import Route
from .rest.types import CacheConfig, RESTConfig
from .structures import Channel, Guild, Member, Message, Role, User
from .utils.collection import Collection

logger = logging.getLogger(__name__)

# (filename, content) or (filename, content, content type)
FileAttachment = Tuple[str, bytes] | Tuple[str, bytes, str]


class Client:
    """
    Chat platform API client with entity caches.

    Attributes:
        rest: Rate-limited request dispatcher
        users: Cached users, shared by members, message authors and DM recipients
        guilds: Cached guilds
        channels: Cached channels of all guilds and DMs
        messages: Cached messages (last 100 by default)
    """

    def __init__(
        self,
        token: str,
        *,
        restConfig: Optional[RESTConfig] = None,
        cacheConfig: Optional[CacheConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            token: Bot token
            restConfig: RESTManager settings
            cacheConfig: Collection limits
            transport: Custom httpx transport (e.g. httpx.MockTransport in tests)

        Raises:
            ConfigurationError: If token is empty
            InvalidArgumentError: If a cache limit is negative
        """
        cacheConfig = cacheConfig or {}
        self.rest = RESTManager.fromConfig(token, restConfig, transport=transport)
        self.users: Collection[User] = Collection(User, cacheConfig.get("users"))
        self.guilds: Collection[Guild] = Collection(Guild, cacheConfig.get("guilds"))
        self.channels: Collection[Channel] = Collection(Channel, cacheConfig.get("channels"))
        self.messages: Collection[Message] = Collection(
            Message, cacheConfig.get("messages", DEFAULT_MESSAGE_CACHE_LIMIT)
        )

        self._eventHandlers: Dict[GatewayEvent, Callable[[GatewayEvent, Dict[str, Any]], Any]] = {
            GatewayEvent.GUILD_CREATE: self._onGuildUpsert,
            GatewayEvent.GUILD_UPDATE: self._onGuildUpsert,
            GatewayEvent.GUILD_DELETE: self._onGuildDelete,
            GatewayEvent.GUILD_MEMBER_ADD: self._onMemberUpsert,
            GatewayEvent.GUILD_MEMBER_UPDATE: self._onMemberUpsert,
            GatewayEvent.GUILD_MEMBER_REMOVE: self._onMemberRemove,
            GatewayEvent.GUILD_ROLE_CREATE: self._onRoleUpsert,
            GatewayEvent.GUILD_ROLE_UPDATE: self._onRoleUpsert,
            GatewayEvent.GUILD_ROLE_DELETE: self._onRoleDelete,
            GatewayEvent.CHANNEL_CREATE: self._onChannelUpsert,
            GatewayEvent.CHANNEL_UPDATE: self._onChannelUpsert,
            GatewayEvent.CHANNEL_DELETE: self._onChannelDelete,
            GatewayEvent.MESSAGE_CREATE: self._onMessageCreate,
            GatewayEvent.MESSAGE_UPDATE: self._onMessageUpdate,
            GatewayEvent.MESSAGE_DELETE: self._onMessageDelete,
            GatewayEvent.USER_UPDATE: self._onUserUpdate,
        }

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.rest.aclose()

    async def _request(
        self,
        method: str,
        template: str,
        params: Dict[str, Any],
        payload: Any = None,
        contentType: str = CONTENT_TYPE_JSON,
        *,
        reason: Optional[str] = None,
        query: Optional[Dict[str, Any]] = None,
    ) -> Any:
        route = Route.fromTemplate(method, template, **params)
        return await self.rest.request(
            route.method, route.path, payload, contentType, reason=reason, query=query
        )

    ###
    # Users and channels
    ###

    async def getUser(self, userId: str) -> User:
        """Fetch a user and cache it."""
        data = await self._request(HTTP_GET, "/users/{user_id}", {"user_id": userId})
        return self.users.update(data)

    async def getChannel(self, channelId: str) -> Channel:
        """Fetch a channel and cache it."""
        data = await self._request(HTTP_GET, "/channels/{channel_id}", {"channel_id": channelId})
        return self._storeChannel(data)

    async def createDM(self, recipientId: str) -> Channel:
        """Open (or get) the DM channel with a user."""
        data = await self._request(HTTP_POST, "/users/@me/channels", {}, {"recipient_id": recipientId})
        return self._storeChannel(data)

    ###
    # Messages
    ###

    async def createMessage(
        self,
        channelId: str,
        content: Optional[str] = None,
        *,
        embeds: Optional[List[Dict[str, Any]]] = None,
        tts: bool = False,
        files: Optional[Sequence[FileAttachment]] = None,
        **fields: Any,
    ) -> Message:
        """Send a message to a channel.

        Args:
            channelId: Target channel
            content: Message text
            embeds: Embed objects
            tts: Text-to-speech flag
            files: Attachments, sent as multipart form data
            **fields: Any other message fields (``allowed_mentions``, ``message_reference``...)

        Returns:
            Cached message
        """
        body: Dict[str, Any] = dict(fields)
        if content is not None:
            body["content"] = content
        if embeds is not None:
            body["embeds"] = embeds
        if tts:
            body["tts"] = True

        params = {"channel_id": channelId}
        if files:
            multipart = {
                "files": {f"files[{index}]": attachment for index, attachment in enumerate(files)},
                "payload_json": body,
            }
            data = await self._request(
                HTTP_POST, "/channels/{channel_id}/messages", params, multipart, CONTENT_TYPE_FORM_DATA
            )
        else:
            data = await self._request(HTTP_POST, "/channels/{channel_id}/messages", params, body)
        return self.messages.update(data, self)

    async def editMessage(
        self, channelId: str, messageId: str, content: Optional[str] = None, **fields: Any
    ) -> Message:
        """Edit a message, updating the cached one in place."""
        body: Dict[str, Any] = dict(fields)
        if content is not None:
            body["content"] = content
        data = await self._request(
            HTTP_PATCH,
            "/channels/{channel_id}/messages/{message_id}",
            {"channel_id": channelId, "message_id": messageId},
            body,
        )
        return self.messages.update(data, self)

    async def deleteMessage(self, channelId: str, messageId: str, *, reason: Optional[str] = None) -> None:
        await self._request(
            HTTP_DELETE,
            "/channels/{channel_id}/messages/{message_id}",
            {"channel_id": channelId, "message_id": messageId},
            reason=reason,
        )
        self.messages.remove(messageId)

    ###
    # Guilds and members
    ###

    async def getGuild(self, guildId: str, *, withCounts: bool = False) -> Guild:
        """Fetch a guild and cache it (with its roles)."""
        query = {"with_counts": "true"} if withCounts else None
        data = await self._request(HTTP_GET, "/guilds/{guild_id}", {"guild_id": guildId}, query=query)
        return self.guilds.update(data, self)

    async def getGuildMember(self, guildId: str, userId: str) -> Member:
        """Fetch a guild member.

        The member is cached in its guild when the guild is cached, its user is
        always cached in ``users``.
        """
        data = await self._request(
            HTTP_GET, "/guilds/{guild_id}/members/{user_id}", {"guild_id": guildId, "user_id": userId}
        )
        return self._storeMember(guildId, data)

    async def editGuildMember(
        self, guildId: str, userId: str, *, reason: Optional[str] = None, **fields: Any
    ) -> Optional[Member]:
        """Modify a guild member (``nick``, ``roles``, ``mute``, ``deaf``, ``communication_disabled_until``...)."""
        data = await self._request(
            HTTP_PATCH,
            "/guilds/{guild_id}/members/{user_id}",
            {"guild_id": guildId, "user_id": userId},
            fields,
            reason=reason,
        )
        if not data:
            return None
        return self._storeMember(guildId, data)

    async def addGuildMemberRole(self, guildId: str, userId: str, roleId: str, *, reason: Optional[str] = None) -> None:
        await self._request(
            HTTP_PUT,
            "/guilds/{guild_id}/members/{user_id}/roles/{role_id}",
            {"guild_id": guildId, "user_id": userId, "role_id": roleId},
            reason=reason,
        )
        member = self._getCachedMember(guildId, userId)
        if member is not None and roleId not in member.roles:
            member.roles.append(roleId)

    async def removeGuildMemberRole(
        self, guildId: str, userId: str, roleId: str, *, reason: Optional[str] = None
    ) -> None:
        await self._request(
            HTTP_DELETE,
            "/guilds/{guild_id}/members/{user_id}/roles/{role_id}",
            {"guild_id": guildId, "user_id": userId, "role_id": roleId},
            reason=reason,
        )
        member = self._getCachedMember(guildId, userId)
        if member is not None and roleId in member.roles:
            member.roles.remove(roleId)

    async def banGuildMember(
        self, guildId: str, userId: str, *, deleteMessageSeconds: int = 0, reason: Optional[str] = None
    ) -> None:
        """Ban a user from a guild, optionally deleting their recent messages."""
        await self._request(
            HTTP_PUT,
            "/guilds/{guild_id}/bans/{user_id}",
            {"guild_id": guildId, "user_id": userId},
            {"delete_message_seconds": deleteMessageSeconds},
            reason=reason,
        )
        self._dropMember(guildId, userId)

    async def removeGuildMember(self, guildId: str, userId: str, *, reason: Optional[str] = None) -> None:
        """Kick a member from a guild."""
        await self._request(
            HTTP_DELETE,
            "/guilds/{guild_id}/members/{user_id}",
            {"guild_id": guildId, "user_id": userId},
            reason=reason,
        )
        self._dropMember(guildId, userId)

    ###
    # Cache helpers
    ###

    def _storeChannel(self, data: Dict[str, Any]) -> Channel:
        channel = self.channels.update(data, self)
        guild = self.guilds.get(channel.guild_id) if channel.guild_id else None
        if guild is not None:
            guild.channels.add(channel)
        return channel

    def _storeMember(self, guildId: str, data: Dict[str, Any]) -> Member:
        guild = self.guilds.get(guildId)
        if guild is not None:
            return guild.members.update(data, guild)

        member = Member.from_dict(dict(data, guild_id=guildId))
        member.user = self.users.update(member.user)
        return member

    def _getCachedMember(self, guildId: str, userId: str) -> Optional[Member]:
        guild = self.guilds.get(guildId)
        if guild is None:
            return None
        return guild.members.get(userId)

    def _dropMember(self, guildId: str, userId: str) -> Optional[Member]:
        guild = self.guilds.get(guildId)
        if guild is None:
            return None
        member = guild.members.remove(userId)
        if member is not None and guild.member_count > 0:
            guild.member_count -= 1
        return member

    def _getEventGuild(self, event: GatewayEvent, data: Dict[str, Any]) -> Optional[Guild]:
        guild = self.guilds.get(data.get("guild_id"))
        if guild is None:
            logger.debug(f"{event} for uncached guild {data.get('guild_id')}, ignoring")
        return guild

    ###
    # Gateway events
    ###

    def processEvent(self, name: str, data: Dict[str, Any]) -> Any:
        """Feed a decoded gateway dispatch into the caches.

        Args:
            name: Dispatch event name, e.g. ``GUILD_CREATE``
            data: Event payload (``d`` field of the dispatch)

        Returns:
            The added/updated/removed entity, or None if nothing was cached
        """
        try:
            event = GatewayEvent(name)
        except ValueError:
            logger.debug(f"Unhandled gateway event {name}, ignoring")
            return None

        logger.debug(f"Processing gateway event {event}")
        return self._eventHandlers[event](event, data)

    def _onGuildUpsert(self, event: GatewayEvent, data: Dict[str, Any]) -> Guild:
        return self.guilds.update(data, self)

    def _onGuildDelete(self, event: GatewayEvent, data: Dict[str, Any]) -> Optional[Guild]:
        if data.get("unavailable"):
            # Outage, the guild is still there
            guild = self.guilds.get(data["id"])
            if guild is not None:
                guild.unavailable = True
            return guild

        guild = self.guilds.remove(data["id"])
        if guild is not None:
            for channelId in guild.channels.keys():
                self.channels.remove(channelId)
        return guild

    def _onMemberUpsert(self, event: GatewayEvent, data: Dict[str, Any]) -> Optional[Member]:
        guild = self._getEventGuild(event, data)
        if guild is None:
            return None
        isNew = Member.extractId(data) not in guild.members
        member = guild.members.update(data, guild)
        if event == GatewayEvent.GUILD_MEMBER_ADD and isNew:
            guild.member_count += 1
        return member

    def _onMemberRemove(self, event: GatewayEvent, data: Dict[str, Any]) -> Optional[Member]:
        if self._getEventGuild(event, data) is None:
            return None
        return self._dropMember(data["guild_id"], Member.extractId(data))

    def _onRoleUpsert(self, event: GatewayEvent, data: Dict[str, Any]) -> Optional[Role]:
        guild = self._getEventGuild(event, data)
        if guild is None:
            return None
        return guild.roles.update(data["role"], guild)

    def _onRoleDelete(self, event: GatewayEvent, data: Dict[str, Any]) -> Optional[Role]:
        guild = self._getEventGuild(event, data)
        if guild is None:
            return None
        roleId = data["role_id"]
        for member in guild.members.values():
            if roleId in member.roles:
                member.roles.remove(roleId)
        return guild.roles.remove(roleId)

    def _onChannelUpsert(self, event: GatewayEvent, data: Dict[str, Any]) -> Channel:
        return self._storeChannel(data)

    def _onChannelDelete(self, event: GatewayEvent, data: Dict[str, Any]) -> Optional[Channel]:
        channel = self.channels.remove(data["id"])
        guild = self.guilds.get(data.get("guild_id"))
        if guild is not None:
            guild.channels.remove(data["id"])
        return channel

    def _onMessageCreate(self, event: GatewayEvent, data: Dict[str, Any]) -> Message:
        message = self.messages.add(data, self)
        channel = self.channels.get(message.channel_id)
        if channel is not None:
            channel.last_message_id = message.id
        return message

    def _onMessageUpdate(self, event: GatewayEvent, data: Dict[str, Any]) -> Optional[Message]:
        # Updates are partial, they can't build an uncached message
        if data.get("id") not in self.messages:
            return None
        return self.messages.update(data, self)

    def _onMessageDelete(self, event: GatewayEvent, data: Dict[str, Any]) -> Optional[Message]:
        return self.messages.remove(data["id"])

    def _onUserUpdate(self, event: GatewayEvent, data: Dict[str, Any]) -> User:
        return self.users.update(data)

    def __repr__(self) -> str:
        return (
            f"Client(users={len(self.users)}, guilds={len(self.guilds)}, "
            f"channels={len(self.channels)}, messages={len(self.messages)})"
        )
