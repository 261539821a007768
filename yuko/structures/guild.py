"""
Guild structure.

A guild owns its members and roles collections. Members are linked to the
client's user collection and channels to the client's channel collection,
both handed over explicitly through ``extra`` (the Client).
"""

import logging
from typing import Any, Dict, Optional

from ..utils.collection import Collection
from .base import Base
from .channel import Channel
from .member import Member
from .role import Role
from .user import User

logger = logging.getLogger(__name__)


class Guild(Base):
    """
    A guild (server).

    ``extra`` for ``from_dict()``/``update()`` is the Client, or anything with
    ``users`` and ``channels`` collections.
    """

    __slots__ = (
        "name",
        "icon",
        "owner_id",
        "member_count",
        "unavailable",
        "members",
        "roles",
        "channels",
        "_users",
        "_clientChannels",
    )

    def __init__(
        self,
        *,
        id: str,
        name: str = "",
        icon: Optional[str] = None,
        owner_id: Optional[str] = None,
        member_count: int = 0,
        unavailable: bool = False,
        users: Optional[Collection[User]] = None,
        channels: Optional[Collection[Channel]] = None,
        api_kwargs: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(id=id, api_kwargs=api_kwargs)
        self.name: str = name
        self.icon: Optional[str] = icon
        self.owner_id: Optional[str] = owner_id
        self.member_count: int = member_count
        self.unavailable: bool = unavailable
        self.members: Collection[Member] = Collection(Member)
        self.roles: Collection[Role] = Collection(Role)
        self.channels: Collection[Channel] = Collection(Channel)
        self._users = users
        self._clientChannels = channels

    @property
    def users(self) -> Optional[Collection[User]]:
        """Client user collection members take their users from"""
        return self._users

    def _load(self, data: Dict[str, Any], extra: Any) -> None:
        if extra is not None:
            self._users = getattr(extra, "users", self._users)
            self._clientChannels = getattr(extra, "channels", self._clientChannels)

        self.name = data.get("name", self.name)
        self.icon = data.get("icon", self.icon)
        self.owner_id = data.get("owner_id", self.owner_id)
        self.member_count = data.get("member_count", self.member_count)
        self.unavailable = data.get("unavailable", self.unavailable)

        for roleData in data.get("roles") or []:
            self.roles.update(roleData, self)

        for memberData in data.get("members") or []:
            self.members.update(memberData, self)

        for channelData in data.get("channels") or []:
            channelData = dict(channelData, guild_id=self.id)
            if self._clientChannels is not None:
                channel = self._clientChannels.update(channelData, extra)
            else:
                channel = Channel.from_dict(channelData, extra)
            self.channels.add(channel)

        logger.debug(
            f"Loaded guild {self.id}: {len(self.roles)} roles, "
            f"{len(self.members)} members, {len(self.channels)} channels"
        )

    def to_dict(self, recursive: bool = True) -> Dict[str, Any]:
        data = super().to_dict(recursive=False)
        if recursive:
            data["members"] = [member.to_dict() for member in self.members.values()]
            data["roles"] = [role.to_dict() for role in self.roles.values()]
            data["channels"] = [channel.to_dict() for channel in self.channels.values()]
        return data

    @property
    def owner(self) -> Optional[Member]:
        if self.owner_id is None:
            return None
        return self.members.get(self.owner_id)

    def __repr__(self) -> str:
        return f"Guild(id={self.id!r}, name={self.name!r})"
