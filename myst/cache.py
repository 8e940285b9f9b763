"""Per-shard LRU caches for segment data structures."""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Hashable
from typing import Any, Generic, TypeVar

__all__ = ["LruCache", "ShardedCache", "Cache"]

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DOCSTORE_CAPACITY = 200
DICT_CAPACITY = 48
EPOCH_BITMAP_CAPACITY = 48


class LruCache(Generic[K, V]):
    """Thread-safe cache holding at most ``capacity`` most recently used entries."""

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self._entries: OrderedDict[K, V] = OrderedDict()
        self._lock = threading.Lock()

    def put(self, key: K, value: V) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.capacity:
                self._entries.popitem(last=False)

    def get(self, key: K) -> V | None:
        """Return the cached value and mark it most recently used, or None."""
        with self._lock:
            if key not in self._entries:
                return None
            self._entries.move_to_end(key)
            return self._entries[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ShardedCache:
    """Caches for one shard: docstores, dictionaries and epoch bitmaps."""

    def __init__(self) -> None:
        self.docstore_cache: LruCache[tuple[int, int], Any] = LruCache(DOCSTORE_CAPACITY)
        self.dict_cache: LruCache[int, Any] = LruCache(DICT_CAPACITY)
        self.epoch_bitmap_cache: LruCache[tuple[int, int], Any] = LruCache(
            EPOCH_BITMAP_CAPACITY
        )

    def put_docstore(self, segment: int, docstore_id: int, docstore: Any) -> None:
        self.docstore_cache.put((segment, docstore_id), docstore)

    def put_dict(self, segment: int, dictionary: Any) -> None:
        self.dict_cache.put(segment, dictionary)

    def put_epoch_bitmap(self, segment: int, epoch: int, bitmap: Any) -> None:
        self.epoch_bitmap_cache.put((segment, epoch), bitmap)


class Cache:
    """Maps shard ids to their caches, creating them on first use."""

    def __init__(self) -> None:
        self._shards: dict[int, ShardedCache] = {}
        self._lock = threading.Lock()

    def insert_sharded_cache(self, shard: int) -> ShardedCache:
        """Install a fresh cache for ``shard``, replacing any existing one."""
        sharded = ShardedCache()
        with self._lock:
            self._shards[shard] = sharded
        return sharded

    def get_sharded_cache(self, shard: int) -> ShardedCache:
        with self._lock:
            existing = self._shards.get(shard)
        if existing is not None:
            return existing
        return self.insert_sharded_cache(shard)