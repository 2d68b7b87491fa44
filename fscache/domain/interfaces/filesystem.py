"""Interface for interacting with a file system.

Defines the contract for reading, writing and deleting files and
directories, allowing cache pools to be independent of the specific
storage (e.g., local disk, memory, S3). Paths are relative to the
adapter's root and use '/' as separator.
"""

import abc
from typing import Mapping, Optional

# Import relevant domain models
from ..models.common import FilePath, Visibility

# Keys understood in the ``config`` mapping passed to write operations.
OPTION_VISIBILITY = "visibility"
OPTION_DIRECTORY_VISIBILITY = "directory_visibility"

VISIBILITY_PUBLIC = Visibility("public")
VISIBILITY_PRIVATE = Visibility("private")

WriteConfig = Mapping[str, str]


class FileSystem(abc.ABC):
    """Abstract Base Class for file system operations."""

    @abc.abstractmethod
    async def file_exists(self, path: FilePath) -> bool:
        """Checks if a file exists asynchronously."""
        pass

    @abc.abstractmethod
    async def directory_exists(self, path: FilePath) -> bool:
        """Checks if a directory exists asynchronously."""
        pass

    @abc.abstractmethod
    async def read(self, path: FilePath) -> bytes:
        """Reads the entire content of a file asynchronously.

        Raises:
            UnableToReadFile: If the file is missing or cannot be read.
            PathTraversalDetected: If the path escapes the adapter root.
        """
        pass

    @abc.abstractmethod
    async def write(self, path: FilePath, contents: bytes, config: Optional[WriteConfig] = None) -> None:
        """Writes contents to a file, overwriting it and creating parent directories.

        Raises:
            UnableToWriteFile: If the file cannot be written.
        """
        pass

    @abc.abstractmethod
    async def delete(self, path: FilePath) -> None:
        """Deletes a file. Deleting a missing file is a no-op.

        Raises:
            UnableToDeleteFile: If an existing file cannot be removed.
        """
        pass

    @abc.abstractmethod
    async def create_directory(self, path: FilePath, config: Optional[WriteConfig] = None) -> None:
        """Creates a directory and its parents if they do not exist.

        Raises:
            UnableToCreateDirectory: If the directory cannot be created.
        """
        pass

    @abc.abstractmethod
    async def delete_directory(self, path: FilePath) -> None:
        """Deletes a directory with everything in it. Missing directories are a no-op.

        Raises:
            UnableToDeleteDirectory: If the directory cannot be removed.
        """
        pass
