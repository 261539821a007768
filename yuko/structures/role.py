"""
Role structure.
"""

from typing import Any, Dict, Optional

from .base import Base


class Role(Base):
    """
    A guild role.

    ``extra`` for ``from_dict()``/``update()`` is the owning Guild.
    """

    __slots__ = (
        "name",
        "color",
        "hoist",
        "managed",
        "mentionable",
        "position",
        "permissions",
        "_guild",
    )

    def __init__(
        self,
        *,
        id: str,
        name: str = "",
        color: int = 0,
        hoist: bool = False,
        managed: bool = False,
        mentionable: bool = False,
        position: int = 0,
        permissions: int = 0,
        guild: Any = None,
        api_kwargs: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(id=id, api_kwargs=api_kwargs)
        self.name: str = name
        self.color: int = color
        self.hoist: bool = hoist
        self.managed: bool = managed
        self.mentionable: bool = mentionable
        self.position: int = position
        self.permissions: int = permissions
        self._guild = guild

    @property
    def guild(self) -> Any:
        return self._guild

    def _load(self, data: Dict[str, Any], extra: Any) -> None:
        if extra is not None:
            self._guild = extra
        self.name = data.get("name", self.name)
        self.color = data.get("color", self.color)
        self.hoist = data.get("hoist", self.hoist)
        self.managed = data.get("managed", self.managed)
        self.mentionable = data.get("mentionable", self.mentionable)
        self.position = data.get("position", self.position)
        if "permissions" in data:
            # Permissions are serialized as strings, they don't fit into 53 bits
            self.permissions = int(data["permissions"])

    def to_dict(self, recursive: bool = True) -> Dict[str, Any]:
        data = super().to_dict(recursive)
        data["permissions"] = str(self.permissions)
        return data

    @property
    def mention(self) -> str:
        return f"<@&{self.id}>"

    def __repr__(self) -> str:
        return f"Role(id={self.id!r}, name={self.name!r})"
