"""
User structure.
"""

from typing import Any, Dict, Optional

from .base import Base


class User(Base):
    """
    A user (or bot) account.

    Users are shared: members and messages reference the very same User
    object stored in the client's user collection.
    """

    __slots__ = (
        "username",
        "global_name",
        "discriminator",
        "avatar",
        "bot",
        "system",
    )

    def __init__(
        self,
        *,
        id: str,
        username: str = "",
        global_name: Optional[str] = None,
        discriminator: str = "0",
        avatar: Optional[str] = None,
        bot: bool = False,
        system: bool = False,
        api_kwargs: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(id=id, api_kwargs=api_kwargs)
        self.username: str = username
        self.global_name: Optional[str] = global_name
        self.discriminator: str = discriminator
        self.avatar: Optional[str] = avatar
        self.bot: bool = bot
        self.system: bool = system

    def _load(self, data: Dict[str, Any], extra: Any) -> None:
        self.username = data.get("username", self.username)
        self.global_name = data.get("global_name", self.global_name)
        self.discriminator = data.get("discriminator", self.discriminator)
        self.avatar = data.get("avatar", self.avatar)
        self.bot = data.get("bot", self.bot)
        self.system = data.get("system", self.system)

    @property
    def tag(self) -> str:
        """``username#discriminator``, or just the username for migrated accounts"""
        if not self.discriminator or self.discriminator == "0":
            return self.username
        return f"{self.username}#{self.discriminator}"

    @property
    def mention(self) -> str:
        return f"<@{self.id}>"

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, tag={self.tag!r})"
