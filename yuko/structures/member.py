"""
Member structure.

A Member *has* a User (composition), it is not a User. The user object is
taken from the client's user collection through ``users.update()``, so
``member.user`` is the very object cached there and observes every update
of that user in place.

Actions (``edit``, ``ban``...) take the Client explicitly and forward to its
REST methods; a member holds no reference to a client.
"""

import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..constants import Permissions
from ..exceptions import InvalidArgumentError
from ..utils.common import parseIsoTimestamp
from .base import Base
from .user import User

if TYPE_CHECKING:
    from ..client import Client


class Member(Base):
    """
    A guild member.

    ``extra`` for ``from_dict()``/``update()`` is the owning Guild.
    """

    __slots__ = (
        "user",
        "guild_id",
        "nick",
        "roles",
        "joined_at",
        "deaf",
        "mute",
        "communication_disabled_until",
        "_guild",
    )

    def __init__(
        self,
        *,
        id: str,
        user: Optional[User] = None,
        guild_id: Optional[str] = None,
        nick: Optional[str] = None,
        roles: Optional[List[str]] = None,
        joined_at: Optional[str] = None,
        deaf: bool = False,
        mute: bool = False,
        communication_disabled_until: Optional[str] = None,
        guild: Any = None,
        api_kwargs: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(id=id, api_kwargs=api_kwargs)
        self.user: User = user if user is not None else User(id=id)
        self.guild_id: Optional[str] = guild_id
        self.nick: Optional[str] = nick
        self.roles: List[str] = roles if roles is not None else []
        self.joined_at: Optional[str] = joined_at
        self.deaf: bool = deaf
        self.mute: bool = mute
        self.communication_disabled_until: Optional[str] = communication_disabled_until
        self._guild = guild

    @classmethod
    def extractId(cls, data: Dict[str, Any]) -> Optional[str]:
        """Member payloads carry the id in the nested user object."""
        if data.get("id") is not None:
            return data["id"]
        user = data.get("user")
        if isinstance(user, dict):
            return user.get("id")
        return None

    def _load(self, data: Dict[str, Any], extra: Any) -> None:
        if extra is not None:
            self._guild = extra

        guildId = getattr(self._guild, "id", None)
        self.guild_id = guildId if guildId is not None else data.get("guild_id", self.guild_id)

        userData = data.get("user")
        if isinstance(userData, dict):
            users = getattr(self._guild, "users", None)
            if users is not None:
                self.user = users.update(userData)
            elif self.user.id == userData.get("id"):
                self.user.update(userData)
            else:
                self.user = User.from_dict(userData)

        self.nick = data.get("nick", self.nick)
        self.joined_at = data.get("joined_at", self.joined_at)
        self.deaf = data.get("deaf", self.deaf)
        self.mute = data.get("mute", self.mute)
        self.communication_disabled_until = data.get(
            "communication_disabled_until", self.communication_disabled_until
        )
        if data.get("roles") is not None:
            self.roles = list(data["roles"])

    @property
    def guild(self) -> Any:
        return self._guild

    @property
    def username(self) -> str:
        return self.user.username

    @property
    def bot(self) -> bool:
        return self.user.bot

    @property
    def displayName(self) -> str:
        return self.nick or self.user.global_name or self.user.username

    @property
    def deafened(self) -> bool:
        return self.deaf

    @property
    def muted(self) -> bool:
        return self.mute

    @property
    def joinedAt(self) -> Optional[datetime.datetime]:
        return parseIsoTimestamp(self.joined_at)

    @property
    def communicationDisabledUntil(self) -> Optional[datetime.datetime]:
        return parseIsoTimestamp(self.communication_disabled_until)

    @property
    def mention(self) -> str:
        return f"<@{self.id}>"

    @property
    def permissions(self) -> Permissions:
        """
        Guild-level permissions of the member.

        The guild owner and members with Administrator in any of their roles
        (@everyone included) get every permission. Otherwise it is the union of
        the @everyone role and the member's roles. Roles missing from the
        guild's cache are skipped; without a guild no permission is known.
        """
        guild = self._guild
        if guild is None:
            return Permissions(0)
        if self.id == guild.owner_id:
            return Permissions.all()

        everyone = guild.roles.get(guild.id)
        value = everyone.permissions if everyone is not None else 0
        for roleId in self.roles:
            role = guild.roles.get(roleId)
            if role is not None:
                value |= role.permissions

        if value & Permissions.ADMINISTRATOR:
            return Permissions.all()
        return Permissions(value)

    def toUser(self) -> User:
        """Get the user data only."""
        return self.user

    ###
    # Actions
    ###

    def _requireGuildId(self) -> str:
        if self.guild_id is None:
            raise InvalidArgumentError(f"Member {self.id} has no known guild")
        return self.guild_id

    async def addRole(self, client: "Client", roleId: str, *, reason: Optional[str] = None) -> None:
        await client.addGuildMemberRole(self._requireGuildId(), self.id, roleId, reason=reason)

    async def removeRole(self, client: "Client", roleId: str, *, reason: Optional[str] = None) -> None:
        await client.removeGuildMemberRole(self._requireGuildId(), self.id, roleId, reason=reason)

    async def edit(self, client: "Client", *, reason: Optional[str] = None, **fields: Any) -> Optional["Member"]:
        """Modify the member (``nick``, ``roles``, ``mute``, ``deaf``, ``channel_id``...)."""
        return await client.editGuildMember(self._requireGuildId(), self.id, reason=reason, **fields)

    async def ban(self, client: "Client", *, deleteMessageSeconds: int = 0, reason: Optional[str] = None) -> None:
        await client.banGuildMember(
            self._requireGuildId(), self.id, deleteMessageSeconds=deleteMessageSeconds, reason=reason
        )

    async def remove(self, client: "Client", *, reason: Optional[str] = None) -> None:
        """Kick the member from its guild."""
        await client.removeGuildMember(self._requireGuildId(), self.id, reason=reason)

    def __repr__(self) -> str:
        return f"Member(id={self.id!r}, nick={self.nick!r})"
