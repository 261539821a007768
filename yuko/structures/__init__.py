"""
Entity structures backing every Collection.

All structures share the Base contract:
- ``extractId(data)`` to get the id of raw API data
- ``from_dict(data, extra)`` to build an entity
- ``update(data, extra)`` to mutate it in place
- ``to_dict()`` to serialize it back to API-shaped data
"""

from .base import Base
from .channel import Channel
from .guild import Guild
from .member import Member
from .message import Message
from .role import Role
from .user import User

__all__ = [
    "Base",
    "Channel",
    "Guild",
    "Member",
    "Message",
    "Role",
    "User",
]
