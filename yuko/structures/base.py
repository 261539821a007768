"""
Base structure for all cached entities.

Provides the Base class: an identifiable record (``id`` + snowflake creation
time) with the common plumbing every cached entity needs: building from raw
API data, updating in place, serialization back to API-shaped dicts and
keeping unknown API fields in ``api_kwargs``.
"""

import logging
from typing import Any, Dict, Iterator, Optional, Self

from ..exceptions import InvalidArgumentError
from ..utils.common import snowflakeToTimestamp

logger = logging.getLogger(__name__)


class Base:
    """
    Base class for all entities stored in a Collection.

    Subclasses declare their API fields in ``__slots__`` (named exactly as the
    API names them) and implement ``_load()``. Private slots (starting with
    ``_``) hold context such as the owning guild and are never serialized.
    """

    __slots__ = ("id", "api_kwargs")

    id: str
    api_kwargs: Dict[str, Any]
    """Raw API fields not mapped to attributes"""

    def __init__(self, *, id: str, api_kwargs: Optional[Dict[str, Any]] = None):
        self.id = id
        self.api_kwargs = api_kwargs if api_kwargs is not None else {}

    @property
    def createdAt(self) -> int:
        """Creation time of the entity, unix time in milliseconds"""
        return snowflakeToTimestamp(self.id)

    @classmethod
    def extractId(cls, data: Dict[str, Any]) -> Optional[str]:
        """Get entity id from raw API data."""
        return data.get("id")

    @classmethod
    def _getClassAttrsNames(cls, includePrivate: bool) -> Iterator[str]:
        allSlots: Iterator[str] = (s for c in cls.__mro__[:-1] for s in c.__slots__)
        if includePrivate:
            return allSlots
        return (attr for attr in allSlots if not attr.startswith("_"))

    @classmethod
    def _getExtraKwargs(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """Extract raw fields not defined in class __slots__."""
        knownArgs = set(cls._getClassAttrsNames(includePrivate=True))
        return {k: v for k, v in data.items() if k not in knownArgs}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], extra: Any = None) -> Self:
        """Create entity from API response dictionary.

        Args:
            data: Raw API data
            extra: Context the entity needs (guild, client...)

        Returns:
            New entity instance

        Raises:
            InvalidArgumentError: If the data has no id
        """
        objId = cls.extractId(data)
        if objId is None:
            raise InvalidArgumentError(f"Missing {cls.__name__} id")
        obj = cls(id=objId)
        obj.update(data, extra)
        return obj

    def update(self, data: Dict[str, Any], extra: Any = None) -> None:
        """Update entity in place from (possibly partial) raw API data."""
        self._load(data, extra)
        self.api_kwargs.update(self._getExtraKwargs(data))

    def _load(self, data: Dict[str, Any], extra: Any) -> None:
        pass

    def to_dict(self, recursive: bool = True) -> Dict[str, Any]:
        """Convert entity to API-shaped dictionary.

        The result can be fed back to ``from_dict()`` / ``update()``.

        Args:
            recursive: Whether to convert nested entities to dicts
        """
        data: Dict[str, Any] = dict(self.api_kwargs)
        for key in self._getClassAttrsNames(includePrivate=False):
            if key == "api_kwargs":
                continue
            value = getattr(self, key, None)
            if recursive and isinstance(value, Base):
                value = value.to_dict(recursive=True)
            elif recursive and isinstance(value, list):
                value = [v.to_dict(recursive=True) if isinstance(v, Base) else v for v in value]
            data[key] = value
        return data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Base):
            return NotImplemented
        return type(self) is type(other) and self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id!r})"

    def __str__(self) -> str:
        return self.__repr__()
