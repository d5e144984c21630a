from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Generic, Hashable, Optional, TypeVar

T = TypeVar("T")


class IdentityCache(Generic[T]):
    """
    Bounded LRU map from primary id to entity, with a secondary unique key index.

    Both indexes are always updated or dropped together under one lock. When the
    capacity is exceeded the least recently used entity leaves both indexes.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._by_id: "OrderedDict[Hashable, T]" = OrderedDict()
        self._by_key: dict[Hashable, Hashable] = {}
        self._key_of: dict[Hashable, Hashable] = {}
        self._lock = threading.Lock()
        self._generation = 0

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, id_: Hashable) -> Optional[T]:
        with self._lock:
            item = self._by_id.get(id_)
            if item is not None:
                self._by_id.move_to_end(id_)
            return item

    def get_by_key(self, key: Hashable) -> Optional[T]:
        with self._lock:
            id_ = self._by_key.get(key)
            if id_ is None:
                return None
            self._by_id.move_to_end(id_)
            return self._by_id[id_]

    @property
    def generation(self) -> int:
        """Bumped by every invalidation; read it before loading a row to cache."""
        with self._lock:
            return self._generation

    def put(self, id_: Hashable, key: Hashable, item: T, generation: Optional[int] = None) -> bool:
        """
        Cache item under id_ and key. With generation given, the put is skipped
        (returns False) when an invalidation happened since that generation was read.
        """
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            self._drop(id_)
            old_id = self._by_key.get(key)
            if old_id is not None:
                self._drop(old_id)
            self._by_id[id_] = item
            self._by_key[key] = id_
            self._key_of[id_] = key
            while len(self._by_id) > self.capacity:
                oldest = next(iter(self._by_id))
                self._drop(oldest)
            return True

    def invalidate(self, id_: Hashable) -> None:
        with self._lock:
            self._generation += 1
            self._drop(id_)

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._by_id.clear()
            self._by_key.clear()
            self._key_of.clear()

    def _drop(self, id_: Hashable) -> None:
        self._by_id.pop(id_, None)
        key = self._key_of.pop(id_, None)
        if key is not None and self._by_key.get(key) == id_:
            del self._by_key[key]
