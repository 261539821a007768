"""
Collection: in-memory entity cache keyed by id, dood!

Every structure returned to the caller (users, guilds, members, roles,
channels, messages) lives in a Collection. The collection gives callers
stable identity: ``update()`` mutates the stored entity in place instead of
replacing it, so long-lived references (like ``member.user``) observe the
change.

Core Features:
    - Entities built from raw API data through the ``base`` class factory
    - Optional ``limit`` with insertion-order eviction (oldest goes first,
      reads never refresh position)
    - ``limit=0`` no-cache mode: entities are built but never stored
    - Thread-safe operations using RLock for concurrent access
    - Higher-order traversal helpers over a snapshot of current values

Example:
    >>> users = Collection(User, limit=1000)
    >>> user = users.add({"id": "80351110224678912", "username": "Nelly"})
    >>> users.update({"id": "80351110224678912", "username": "Nelly2"}) is user
    True
"""

import functools
import logging
import random
import threading
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterator,
    List,
    Optional,
    Protocol,
    Self,
    Tuple,
    Type,
    TypeVar,
)

from ..exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

EntityId = str | int


class CollectionItem(Protocol):
    """What a Collection needs from the entities it stores."""

    id: EntityId

    @classmethod
    def extractId(cls, data: Dict[str, Any]) -> Optional[EntityId]: ...

    @classmethod
    def from_dict(cls, data: Dict[str, Any], extra: Any = None) -> Self: ...

    def update(self, data: Dict[str, Any], extra: Any = None) -> None: ...

    def to_dict(self) -> Dict[str, Any]: ...


T = TypeVar("T", bound=CollectionItem)
R = TypeVar("R")

_MISSING: Any = object()


class Collection(Generic[T]):
    """
    Mapping from entity id to entity with bounded insertion-order eviction.

    Iteration order is insertion order. Iterating the collection yields ids
    (as a dict does); ``values()``/``items()`` return snapshots, never live
    views.

    Attributes:
        base: Entity class used to build entities from raw data
        limit: Max number of entities to hold, None for unlimited, 0 to never store
    """

    def __init__(self, base: Type[T], limit: Optional[int] = None):
        """
        Initialize an empty collection.

        Args:
            base: Entity class; must provide ``from_dict(data, extra)``,
                ``extractId(data)`` and ``update(data, extra)``
            limit: Max number of entities to hold. None means unlimited,
                0 means no-cache mode

        Raises:
            InvalidArgumentError: If limit is negative
        """
        if limit is not None and limit < 0:
            raise InvalidArgumentError(f"Collection limit must be non-negative, got {limit}")

        self.base = base
        self.limit = limit
        self._items: Dict[EntityId, T] = {}
        self._lock = threading.RLock()

    def _build(self, obj: T | Dict[str, Any], extra: Any) -> T:
        if isinstance(obj, self.base):
            return obj
        return self.base.from_dict(obj, extra)

    def _getId(self, obj: Any) -> Optional[EntityId]:
        if isinstance(obj, self.base):
            return obj.id
        if isinstance(obj, dict):
            return self.base.extractId(obj)
        if isinstance(obj, (str, int)) and not isinstance(obj, bool):
            return obj
        return getattr(obj, "id", None)

    def _evict(self) -> None:
        if not self.limit:
            return
        # dict keeps insertion order, so the first keys are the oldest ones
        while len(self._items) > self.limit:
            oldestId = next(iter(self._items))
            del self._items[oldestId]
            logger.debug(f"{self!r}: evicted {oldestId}")

    def add(self, obj: T | Dict[str, Any], extra: Any = None, replace: bool = False) -> T:
        """
        Add an entity.

        Args:
            obj: Raw entity data or an already built entity
            extra: Extra context passed to the entity factory (e.g. the guild)
            replace: Whether to replace an existing entity with the same id

        Returns:
            The stored entity, the existing one if it is kept, or a detached
            entity in no-cache mode

        Raises:
            InvalidArgumentError: If the object has no id
        """
        if self.limit == 0:
            return self._build(obj, extra)

        objId = self._getId(obj)
        if objId is None:
            raise InvalidArgumentError("Missing object id")

        with self._lock:
            existing = self._items.get(objId)
            if existing is not None and not replace:
                return existing

            item = self._build(obj, extra)
            self._items[objId] = item
            self._evict()
            return item

    def update(self, obj: T | Dict[str, Any], extra: Any = None, replace: bool = False) -> T:
        """
        Update an entity in place, adding it if it isn't cached yet.

        The stored object keeps its identity, so every reference to it sees
        the new data.

        Args:
            obj: Raw entity data or an already built entity
            extra: Extra context passed to the entity factory / update routine
            replace: Passed to ``add()`` when the entity isn't cached

        Returns:
            The updated (same) entity or the newly added one

        Raises:
            InvalidArgumentError: If the object has no id (0 is a valid id)
        """
        objId = self._getId(obj)
        if objId is None or (not objId and not (isinstance(objId, int) and not isinstance(objId, bool))):
            raise InvalidArgumentError("Missing object id")

        with self._lock:
            item = self._items.get(objId)
            if item is None:
                return self.add(obj, extra, replace)

            data = obj if isinstance(obj, dict) else obj.to_dict()
            item.update(data, extra)
            return item

    def remove(self, obj: T | Dict[str, Any] | EntityId) -> Optional[T]:
        """
        Remove an entity.

        Args:
            obj: Entity, raw data with an id, or the id itself

        Returns:
            The removed entity, or None if it wasn't cached
        """
        objId = self._getId(obj)
        if objId is None:
            return None
        with self._lock:
            return self._items.pop(objId, None)

    def get(self, objId: EntityId, default: Optional[T] = None) -> Optional[T]:
        with self._lock:
            return self._items.get(objId, default)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def keys(self) -> List[EntityId]:
        with self._lock:
            return list(self._items.keys())

    def values(self) -> List[T]:
        with self._lock:
            return list(self._items.values())

    def items(self) -> List[Tuple[EntityId, T]]:
        with self._lock:
            return list(self._items.items())

    def __getitem__(self, objId: EntityId) -> T:
        with self._lock:
            return self._items[objId]

    def __contains__(self, objId: object) -> bool:
        with self._lock:
            return objId in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[EntityId]:
        return iter(self.keys())

    def every(self, func: Callable[[T], bool]) -> bool:
        """Return True if all entities satisfy the condition."""
        return all(func(item) for item in self.values())

    def some(self, func: Callable[[T], bool]) -> bool:
        """Return True if at least one entity satisfies the condition."""
        return any(func(item) for item in self.values())

    def filter(self, func: Callable[[T], bool]) -> List[T]:
        """Return all the entities that make the function evaluate true."""
        return [item for item in self.values() if func(item)]

    def find(self, func: Callable[[T], bool]) -> Optional[T]:
        """Return the first entity that makes the function evaluate true, or None."""
        for item in self.values():
            if func(item):
                return item
        return None

    def map(self, func: Callable[[T], R]) -> List[R]:
        """Return a list with the results of applying the function to each entity."""
        return [func(item) for item in self.values()]

    def reduce(self, func: Callable[[Any, T], Any], initial: Any = _MISSING) -> Any:
        """
        Fold the entities into a single value.

        Args:
            func: Takes the accumulated value and the next entity
            initial: Seed value. When omitted, the first entity is the seed

        Raises:
            TypeError: If the collection is empty and no initial value is given
        """
        values = self.values()
        if initial is _MISSING:
            return functools.reduce(func, values)
        return functools.reduce(func, values, initial)

    def random(self) -> Optional[T]:
        """Get a random entity, None if the collection is empty."""
        values = self.values()
        if not values:
            return None
        return random.choice(values)

    def toDict(self) -> Dict[EntityId, T]:
        """Return ``{id: entity}`` snapshot of the collection."""
        with self._lock:
            return dict(self._items)

    def __repr__(self) -> str:
        return f"[Collection<{self.base.__name__}>]"
