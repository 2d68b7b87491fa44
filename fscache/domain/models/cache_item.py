"""Cache item model.

A ``CacheItem`` is what pools hand out from ``get_item`` and accept in
``save``. It keeps the tags the item was stored with (``previous_tags``) apart
from the tags it will be saved with, so a pool can move the key between tag
lists on save.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Iterable, List, NamedTuple, Optional, Union

from fscache.domain.errors import InvalidArgumentError
from fscache.domain.models.common import RESERVED_CHARACTERS, CacheKey, CacheTag

Expiration = Union[datetime, int, None]
TimeToLive = Union[timedelta, int, None]


class FetchResult(NamedTuple):
    """What a storage backend returns for a single key lookup."""
    hit: bool
    value: Any
    tags: List[CacheTag]
    expiration_timestamp: Optional[int]

    @classmethod
    def miss(cls) -> "FetchResult":
        return cls(False, None, [], None)


def _type_name(value: Any) -> str:
    return type(value).__name__


@dataclass
class CacheItem:
    """A single cache entry: key, value, expiry and tags."""
    key: CacheKey
    value: Any = None
    has_value: bool = False
    expiration_timestamp: Optional[int] = None
    tags: List[CacheTag] = field(default_factory=list)
    previous_tags: List[CacheTag] = field(default_factory=list)

    @classmethod
    def from_fetch(cls, key: CacheKey, result: FetchResult) -> "CacheItem":
        """Builds an item from a backend lookup. Stored tags become previous tags."""
        expiration = result.expiration_timestamp
        if not isinstance(expiration, int) or isinstance(expiration, bool):
            expiration = None
        return cls(
            key=key,
            value=result.value,
            has_value=bool(result.hit),
            expiration_timestamp=expiration,
            previous_tags=list(result.tags or []),
        )

    def get_key(self) -> CacheKey:
        return self.key

    def get(self) -> Any:
        """Returns the value, or None when the item is not a hit."""
        if not self.is_hit():
            return None
        return self.value

    def set(self, value: Any) -> "CacheItem":
        self.value = value
        self.has_value = True
        return self

    def is_hit(self) -> bool:
        if not self.has_value:
            return False
        if self.expiration_timestamp is not None:
            return self.expiration_timestamp > time.time()
        return True

    def get_expiration_timestamp(self) -> Optional[int]:
        return self.expiration_timestamp

    def expires_at(self, expiration: Expiration) -> "CacheItem":
        """Sets an absolute expiry as a datetime, a unix timestamp or None (never)."""
        if isinstance(expiration, datetime):
            self.expiration_timestamp = int(expiration.timestamp())
        elif expiration is None or (isinstance(expiration, int) and not isinstance(expiration, bool)):
            self.expiration_timestamp = expiration
        else:
            raise InvalidArgumentError(
                "Cache item ttl/expires_at must be of type int or datetime, "
                f'"{_type_name(expiration)}" given.'
            )
        return self

    def expires_after(self, ttl: TimeToLive) -> "CacheItem":
        """Sets a relative expiry in seconds or as a timedelta. None means never."""
        if ttl is None:
            self.expiration_timestamp = None
        elif isinstance(ttl, timedelta):
            self.expiration_timestamp = int(time.time() + ttl.total_seconds())
        elif isinstance(ttl, int) and not isinstance(ttl, bool):
            self.expiration_timestamp = int(time.time()) + ttl
        else:
            raise InvalidArgumentError(
                "Cache item ttl/expires_after must be of type int or timedelta, "
                f'"{_type_name(ttl)}" given.'
            )
        return self

    def get_tags(self) -> List[CacheTag]:
        return list(self.tags)

    def get_previous_tags(self) -> List[CacheTag]:
        return list(self.previous_tags)

    def set_tags(self, tags: Iterable[str]) -> "CacheItem":
        """Replaces the item's tags."""
        self.tags = []
        return self.add_tags(tags)

    def add_tag(self, tag: str) -> "CacheItem":
        return self.add_tags([tag])

    def add_tags(self, tags: Iterable[str]) -> "CacheItem":
        if isinstance(tags, str):
            tags = [tags]
        for tag in tags:
            if not isinstance(tag, str):
                raise InvalidArgumentError(f'Cache tag must be string, "{_type_name(tag)}" given')
            if tag in self.tags:
                continue
            if not tag:
                raise InvalidArgumentError("Cache tag length must be greater than zero")
            if any(char in RESERVED_CHARACTERS for char in tag):
                raise InvalidArgumentError(
                    f'Cache tag "{tag}" contains reserved characters {RESERVED_CHARACTERS}'
                )
            self.tags.append(CacheTag(tag))
        return self

    def move_tags_to_previous(self) -> None:
        self.previous_tags = list(self.tags)
        self.tags = []
