"""Interface for cache pools.

Defines the contract for storing, retrieving, tagging and invalidating
cached data. Two flavours of access are offered: an item API working on
``CacheItem`` objects (with deferred saves) and a simple key/value API.
"""

import abc
from typing import Any, Dict, Iterable, Mapping, Optional

# Import relevant domain models
from ..models.cache_item import CacheItem, TimeToLive
from ..models.common import CacheKey, CacheTag


class CachePool(abc.ABC):
    """Abstract Base Class for cache pool operations."""

    # --- Item API ---

    @abc.abstractmethod
    async def get_item(self, key: CacheKey) -> CacheItem:
        """Returns the item for ``key``. Always returns an item, hit or not.

        Raises:
            InvalidArgumentError: If the key is not a legal cache key.
        """
        pass

    @abc.abstractmethod
    async def get_items(self, keys: Iterable[CacheKey] = ()) -> Dict[CacheKey, CacheItem]:
        """Returns a mapping of key to item for every requested key."""
        pass

    @abc.abstractmethod
    async def has_item(self, key: CacheKey) -> bool:
        """Checks whether the pool holds a live (unexpired) value for ``key``."""
        pass

    @abc.abstractmethod
    async def clear(self) -> bool:
        """Deletes every item in the pool, including deferred ones."""
        pass

    @abc.abstractmethod
    async def delete_item(self, key: CacheKey) -> bool:
        """Removes one item from the pool."""
        pass

    @abc.abstractmethod
    async def delete_items(self, keys: Iterable[CacheKey]) -> bool:
        """Removes several items. Returns False if any of them could not be removed."""
        pass

    @abc.abstractmethod
    async def save(self, item: CacheItem) -> bool:
        """Persists an item immediately."""
        pass

    @abc.abstractmethod
    async def save_deferred(self, item: CacheItem) -> bool:
        """Queues an item to be persisted on the next ``commit``."""
        pass

    @abc.abstractmethod
    async def commit(self) -> bool:
        """Persists every deferred item. Returns False if any save failed."""
        pass

    @abc.abstractmethod
    async def invalidate_tag(self, tag: CacheTag) -> bool:
        """Removes every item stored with ``tag``."""
        pass

    @abc.abstractmethod
    async def invalidate_tags(self, tags: Iterable[CacheTag]) -> bool:
        """Removes every item stored with any of ``tags``."""
        pass

    # --- Simple key/value API ---

    @abc.abstractmethod
    async def get(self, key: CacheKey, default: Any = None) -> Any:
        pass

    @abc.abstractmethod
    async def set(self, key: CacheKey, value: Any, ttl: TimeToLive = None) -> bool:
        pass

    @abc.abstractmethod
    async def delete(self, key: CacheKey) -> bool:
        pass

    @abc.abstractmethod
    async def get_multiple(self, keys: Iterable[CacheKey], default: Any = None) -> Dict[CacheKey, Any]:
        pass

    @abc.abstractmethod
    async def set_multiple(self, values: Mapping[Any, Any], ttl: TimeToLive = None) -> bool:
        pass

    @abc.abstractmethod
    async def delete_multiple(self, keys: Iterable[CacheKey]) -> bool:
        pass

    @abc.abstractmethod
    async def has(self, key: CacheKey) -> bool:
        pass

    async def close(self) -> Optional[bool]:
        """Releases the pool. Implementations flush pending work here."""
        return None

    async def __aenter__(self) -> "CachePool":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
