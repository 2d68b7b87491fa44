"""Defines common Value Objects used across the cache and filesystem contexts.

These objects represent simple values like keys, tags and file paths,
ensuring consistency and type safety.
"""

from typing import NewType

# Using NewType for semantic clarity, although they are strings at runtime.

# === Caching Context ===
CacheKey = NewType("CacheKey", str)       # Unique key for a cache entry
CacheTag = NewType("CacheTag", str)       # Label used to invalidate groups of entries
ListName = NewType("ListName", str)       # Storage name of a tag's key list (e.g. 'tag!users')

# === File System Context ===
FilePath = NewType("FilePath", str)       # Relative, '/' separated path inside a FileSystem
Visibility = NewType("Visibility", str)   # 'public' or 'private'

# Characters reserved by the cache-pool contract for future extension.
RESERVED_CHARACTERS = "{}()/\\@:"
