"""Shared cache pool logic.

``AbstractCachePool`` implements the whole ``CachePool`` contract on top of a
small set of storage primitives (fetch one object, store one object, clear
one, clear all, and keyed lists used as tag indexes). Storage backends
subclass it and only implement those primitives.

Tags are indexed as lists named ``tag!<tag>`` holding the keys saved with
that tag. On save the key is removed from the lists of the tags it was
stored with before and appended to the lists of its current tags.
"""

import abc
import copy
import logging
import time
from collections.abc import Iterable as IterableABC
from typing import Any, Dict, Iterable, List, Mapping, NoReturn, Optional

from fscache.domain.errors import CacheError, CachePoolError, InvalidArgumentError
from fscache.domain.interfaces.cache import CachePool
from fscache.domain.models.cache_item import CacheItem, FetchResult, TimeToLive
from fscache.domain.models.common import RESERVED_CHARACTERS, CacheKey, CacheTag, ListName

SEPARATOR_TAG = "!"


class AbstractCachePool(CachePool):
    """Base class for cache pools backed by a concrete storage."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self._deferred: Dict[CacheKey, CacheItem] = {}

    def set_logger(self, logger: logging.Logger) -> None:
        self.logger = logger

    # --- Storage primitives implemented by backends ---

    @abc.abstractmethod
    async def fetch_object_from_cache(self, key: CacheKey) -> FetchResult:
        """Loads one stored object. Returns ``FetchResult.miss()`` when absent or expired."""

    @abc.abstractmethod
    async def clear_all_objects_from_cache(self) -> bool:
        pass

    @abc.abstractmethod
    async def clear_one_object_from_cache(self, key: CacheKey) -> bool:
        pass

    @abc.abstractmethod
    async def store_item_in_cache(self, item: CacheItem, ttl: Optional[int]) -> bool:
        """Persists ``item``. ``ttl`` is the remaining lifetime in seconds or None."""

    @abc.abstractmethod
    async def get_list(self, name: ListName) -> List[CacheKey]:
        pass

    @abc.abstractmethod
    async def remove_list(self, name: ListName) -> None:
        pass

    @abc.abstractmethod
    async def append_list_item(self, name: ListName, key: CacheKey) -> bool:
        pass

    @abc.abstractmethod
    async def remove_list_item(self, name: ListName, key: CacheKey) -> bool:
        pass

    # --- Item API ---

    async def get_item(self, key: CacheKey) -> CacheItem:
        self.validate_key(key)
        if key in self._deferred:
            item = copy.copy(self._deferred[key])
            item.move_tags_to_previous()
            return item

        try:
            result = await self.fetch_object_from_cache(key)
        except Exception as e:
            self._handle_exception(e, "get_item")
        return CacheItem.from_fetch(key, result)

    async def get_items(self, keys: Iterable[CacheKey] = ()) -> Dict[CacheKey, CacheItem]:
        items: Dict[CacheKey, CacheItem] = {}
        for key in self._ensure_key_list(keys):
            items[key] = await self.get_item(key)
        return items

    async def has_item(self, key: CacheKey) -> bool:
        item = await self.get_item(key)
        return item.is_hit()

    async def clear(self) -> bool:
        self._deferred = {}
        try:
            return bool(await self.clear_all_objects_from_cache())
        except Exception as e:
            self._handle_exception(e, "clear")

    async def delete_item(self, key: CacheKey) -> bool:
        return await self.delete_items([key])

    async def delete_items(self, keys: Iterable[CacheKey]) -> bool:
        deleted = True
        for key in self._ensure_key_list(keys):
            self.validate_key(key)
            self._deferred.pop(key, None)
            # Pending items may share tag lists with this key
            await self.commit()
            try:
                await self._pre_remove_item(key)
                if not await self.clear_one_object_from_cache(key):
                    deleted = False
            except Exception as e:
                self._handle_exception(e, "delete_items")
        return deleted

    async def save(self, item: CacheItem) -> bool:
        if not isinstance(item, CacheItem):
            raise InvalidArgumentError(
                f'Cache items are not transferable between pools. "{type(item).__name__}" given.'
            )

        time_to_live = None
        timestamp = item.get_expiration_timestamp()
        if timestamp is not None:
            time_to_live = timestamp - int(time.time())
            if time_to_live < 0:
                return await self.delete_item(item.get_key())

        try:
            await self._remove_tag_entries(item)
            await self._save_tags(item)
            return bool(await self.store_item_in_cache(item, time_to_live))
        except Exception as e:
            self._handle_exception(e, "save")

    async def save_deferred(self, item: CacheItem) -> bool:
        self._deferred[item.get_key()] = item
        return True

    async def commit(self) -> bool:
        """Saves every deferred item. On error the unsaved items stay queued."""
        pending = list(self._deferred.values())
        self._deferred = {}
        saved = True
        for index, item in enumerate(pending):
            try:
                if not await self.save(item):
                    saved = False
            except Exception:
                for unsaved in pending[index:]:
                    self._deferred.setdefault(unsaved.get_key(), unsaved)
                raise
        return saved

    async def invalidate_tags(self, tags: Iterable[CacheTag]) -> bool:
        tags = self._ensure_key_list(tags, "tags")
        item_ids: List[CacheKey] = []
        try:
            for tag in tags:
                item_ids.extend(await self.get_list(self.get_tag_key(tag)))
        except Exception as e:
            self._handle_exception(e, "invalidate_tags")

        # A key tagged twice only needs deleting once
        success = await self.delete_items(dict.fromkeys(item_ids))
        if success:
            try:
                for tag in tags:
                    await self.remove_list(self.get_tag_key(tag))
            except Exception as e:
                self._handle_exception(e, "invalidate_tags")
        return success

    async def invalidate_tag(self, tag: CacheTag) -> bool:
        return await self.invalidate_tags([tag])

    async def close(self) -> bool:
        """Commits deferred items."""
        return await self.commit()

    # --- Simple key/value API ---

    async def get(self, key: CacheKey, default: Any = None) -> Any:
        item = await self.get_item(key)
        if not item.is_hit():
            return default
        return item.get()

    async def set(self, key: CacheKey, value: Any, ttl: TimeToLive = None) -> bool:
        item = await self.get_item(key)
        item.set(value)
        item.expires_after(ttl)
        return await self.save(item)

    async def delete(self, key: CacheKey) -> bool:
        return await self.delete_item(key)

    async def get_multiple(self, keys: Iterable[CacheKey], default: Any = None) -> Dict[CacheKey, Any]:
        items = await self.get_items(self._ensure_key_list(keys))
        return {key: (item.get() if item.is_hit() else default) for key, item in items.items()}

    async def set_multiple(self, values: Mapping[Any, Any], ttl: TimeToLive = None) -> bool:
        if not isinstance(values, Mapping):
            raise InvalidArgumentError(f'values must be a mapping, "{type(values).__name__}" given')

        keyed_values: Dict[CacheKey, Any] = {}
        for key, value in values.items():
            if isinstance(key, int) and not isinstance(key, bool):
                key = str(key)
            self.validate_key(key)
            keyed_values[CacheKey(key)] = value

        items = await self.get_items(keyed_values)
        success = True
        for key, item in items.items():
            item.set(keyed_values[key])
            item.expires_after(ttl)
            success = await self.save_deferred(item) and success
        return await self.commit() and success

    async def delete_multiple(self, keys: Iterable[CacheKey]) -> bool:
        return await self.delete_items(self._ensure_key_list(keys))

    async def has(self, key: CacheKey) -> bool:
        return await self.has_item(key)

    # --- Helpers ---

    def validate_key(self, key: Any) -> None:
        if not isinstance(key, str):
            raise InvalidArgumentError(f'Cache key must be string, "{type(key).__name__}" given')
        if not key:
            raise InvalidArgumentError("Cache key cannot be an empty string")
        if any(char in RESERVED_CHARACTERS for char in key):
            raise InvalidArgumentError(
                f'Invalid key: "{key}". The key contains one or more characters reserved '
                f"for future extension: {RESERVED_CHARACTERS}"
            )

    def get_tag_key(self, tag: CacheTag) -> ListName:
        return ListName(f"tag{SEPARATOR_TAG}{tag}")

    @staticmethod
    def _ensure_key_list(keys: Any, name: str = "keys") -> List[str]:
        if isinstance(keys, (str, bytes)) or not isinstance(keys, IterableABC):
            raise InvalidArgumentError(f"{name} is neither a list nor an iterable")
        return list(keys)

    async def _remove_tag_entries(self, item: CacheItem) -> None:
        for tag in item.get_previous_tags():
            await self.remove_list_item(self.get_tag_key(tag), item.get_key())

    async def _save_tags(self, item: CacheItem) -> None:
        for tag in item.get_tags():
            await self.append_list_item(self.get_tag_key(tag), item.get_key())

    async def _pre_remove_item(self, key: CacheKey) -> None:
        item = await self.get_item(key)
        await self._remove_tag_entries(item)

    def _handle_exception(self, exc: Exception, function: str) -> NoReturn:
        """Logs ``exc`` and re-raises it, wrapping non-cache errors in CachePoolError."""
        if isinstance(exc, InvalidArgumentError):
            self.logger.warning(str(exc))
        else:
            self.logger.critical(str(exc), exc_info=exc)

        if isinstance(exc, CacheError):
            raise exc
        raise CachePoolError(f'Exception thrown when executing "{function}". ') from exc
