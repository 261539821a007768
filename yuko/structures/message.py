"""
Message structure.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..exceptions import InvalidArgumentError
from .base import Base
from .user import User

if TYPE_CHECKING:
    from ..client import Client


class Message(Base):
    """
    A channel message.

    ``extra`` for ``from_dict()``/``update()`` is the Client (anything with a
    ``users`` collection); the author is taken from it.
    """

    __slots__ = (
        "channel_id",
        "guild_id",
        "author",
        "content",
        "timestamp",
        "edited_timestamp",
        "tts",
        "pinned",
        "type",
        "embeds",
    )

    def __init__(
        self,
        *,
        id: str,
        channel_id: Optional[str] = None,
        guild_id: Optional[str] = None,
        author: Optional[User] = None,
        content: str = "",
        timestamp: Optional[str] = None,
        edited_timestamp: Optional[str] = None,
        tts: bool = False,
        pinned: bool = False,
        type: int = 0,
        embeds: Optional[List[Dict[str, Any]]] = None,
        api_kwargs: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(id=id, api_kwargs=api_kwargs)
        self.channel_id: Optional[str] = channel_id
        self.guild_id: Optional[str] = guild_id
        self.author: Optional[User] = author
        self.content: str = content
        self.timestamp: Optional[str] = timestamp
        self.edited_timestamp: Optional[str] = edited_timestamp
        self.tts: bool = tts
        self.pinned: bool = pinned
        self.type: int = type
        self.embeds: List[Dict[str, Any]] = embeds if embeds is not None else []

    def _load(self, data: Dict[str, Any], extra: Any) -> None:
        self.channel_id = data.get("channel_id", self.channel_id)
        self.guild_id = data.get("guild_id", self.guild_id)
        self.content = data.get("content", self.content)
        self.timestamp = data.get("timestamp", self.timestamp)
        self.edited_timestamp = data.get("edited_timestamp", self.edited_timestamp)
        self.tts = data.get("tts", self.tts)
        self.pinned = data.get("pinned", self.pinned)
        self.type = data.get("type", self.type)
        if data.get("embeds") is not None:
            self.embeds = list(data["embeds"])

        authorData = data.get("author")
        if isinstance(authorData, dict):
            users = getattr(extra, "users", None)
            if users is not None:
                self.author = users.update(authorData)
            elif self.author is not None and self.author.id == authorData.get("id"):
                self.author.update(authorData)
            else:
                self.author = User.from_dict(authorData)

    @property
    def jumpLink(self) -> str:
        return f"https://discord.com/channels/{self.guild_id or '@me'}/{self.channel_id}/{self.id}"

    def _requireChannelId(self) -> str:
        if self.channel_id is None:
            raise InvalidArgumentError(f"Message {self.id} has no known channel")
        return self.channel_id

    async def edit(self, client: "Client", content: Optional[str] = None, **fields: Any) -> "Message":
        """Edit the message; the cached message is updated in place."""
        return await client.editMessage(self._requireChannelId(), self.id, content, **fields)

    async def delete(self, client: "Client", *, reason: Optional[str] = None) -> None:
        await client.deleteMessage(self._requireChannelId(), self.id, reason=reason)

    def __repr__(self) -> str:
        return f"Message(id={self.id!r}, channel_id={self.channel_id!r})"
