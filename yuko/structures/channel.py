"""
Channel structure.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..constants import ChannelType
from .base import Base
from .user import User

if TYPE_CHECKING:
    from ..client import Client
    from .message import Message


class Channel(Base):
    """
    A guild or private channel.

    ``extra`` for ``from_dict()``/``update()`` is the Client (anything with a
    ``users`` collection); DM recipients are taken from it.
    """

    __slots__ = (
        "type",
        "guild_id",
        "name",
        "topic",
        "nsfw",
        "position",
        "last_message_id",
        "recipients",
    )

    def __init__(
        self,
        *,
        id: str,
        type: int = ChannelType.GUILD_TEXT,
        guild_id: Optional[str] = None,
        name: Optional[str] = None,
        topic: Optional[str] = None,
        nsfw: bool = False,
        position: int = 0,
        last_message_id: Optional[str] = None,
        recipients: Optional[List[User]] = None,
        api_kwargs: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(id=id, api_kwargs=api_kwargs)
        self.type: int = type
        self.guild_id: Optional[str] = guild_id
        self.name: Optional[str] = name
        self.topic: Optional[str] = topic
        self.nsfw: bool = nsfw
        self.position: int = position
        self.last_message_id: Optional[str] = last_message_id
        self.recipients: List[User] = recipients if recipients is not None else []

    def _load(self, data: Dict[str, Any], extra: Any) -> None:
        self.type = data.get("type", self.type)
        self.guild_id = data.get("guild_id", self.guild_id)
        self.name = data.get("name", self.name)
        self.topic = data.get("topic", self.topic)
        self.nsfw = data.get("nsfw", self.nsfw)
        self.position = data.get("position", self.position)
        self.last_message_id = data.get("last_message_id", self.last_message_id)

        if data.get("recipients") is not None:
            users = getattr(extra, "users", None)
            self.recipients = [
                users.update(recipient) if users is not None else User.from_dict(recipient)
                for recipient in data["recipients"]
            ]

    @property
    def isPrivate(self) -> bool:
        return self.type in (ChannelType.DM, ChannelType.GROUP_DM)

    @property
    def mention(self) -> str:
        return f"<#{self.id}>"

    async def createMessage(self, client: "Client", content: Optional[str] = None, **kwargs: Any) -> "Message":
        """Send a message to this channel, see ``Client.createMessage()``."""
        return await client.createMessage(self.id, content, **kwargs)

    def __repr__(self) -> str:
        return f"Channel(id={self.id!r}, type={self.type!r}, name={self.name!r})"
