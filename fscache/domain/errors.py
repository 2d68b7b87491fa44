"""Exceptions raised by cache pools and filesystem adapters.

Cache errors follow the usual cache-pool contract: every pool failure is a
``CacheError``, and bad keys, tags or TTLs are ``InvalidArgumentError``.
Filesystem errors are ``OSError`` subclasses so callers that only care about
I/O can catch them generically.
"""

from typing import Optional


class CacheError(Exception):
    """Base class for all errors raised by a cache pool."""


class InvalidArgumentError(CacheError, ValueError):
    """Raised when a key, tag, TTL or item passed to the pool is not valid."""


class CachePoolError(CacheError):
    """Wraps an unexpected backend failure raised while running a pool operation."""


# --- Filesystem errors ---

class FilesystemError(OSError):
    """Base class for errors raised by FileSystem adapters."""

    def __init__(self, message: str, location: str = "", reason: Optional[str] = None):
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)
        self.location = location
        self.reason = reason or ""

    def __str__(self) -> str:
        return self.args[0] if self.args else ""


class UnableToReadFile(FilesystemError):
    @classmethod
    def from_location(cls, location: str, reason: str = "") -> "UnableToReadFile":
        return cls(f"Unable to read file from location: {location}.", location, reason)


class UnableToWriteFile(FilesystemError):
    @classmethod
    def at_location(cls, location: str, reason: str = "") -> "UnableToWriteFile":
        return cls(f"Unable to write file at location: {location}.", location, reason)


class UnableToDeleteFile(FilesystemError):
    @classmethod
    def at_location(cls, location: str, reason: str = "") -> "UnableToDeleteFile":
        return cls(f"Unable to delete file located at: {location}.", location, reason)


class UnableToCreateDirectory(FilesystemError):
    @classmethod
    def at_location(cls, location: str, reason: str = "") -> "UnableToCreateDirectory":
        return cls(f"Unable to create a directory at {location}.", location, reason)


class UnableToDeleteDirectory(FilesystemError):
    @classmethod
    def at_location(cls, location: str, reason: str = "") -> "UnableToDeleteDirectory":
        return cls(f"Unable to delete directory located at: {location}.", location, reason)


class PathTraversalDetected(FilesystemError):
    @classmethod
    def for_path(cls, path: str) -> "PathTraversalDetected":
        return cls(f"Path traversal detected: {path}", path)


class CorruptedPathDetected(FilesystemError):
    @classmethod
    def for_path(cls, path: str) -> "CorruptedPathDetected":
        return cls(f"Corrupted path detected: {path!r}", path)
