"""Path normalisation shared by the FileSystem adapters."""

import re

from fscache.domain.errors import CorruptedPathDetected, PathTraversalDetected
from fscache.domain.models.common import FilePath

_CONTROL_CHARACTERS = re.compile(r"[\x00-\x1f\x7f]")


def normalize_path(path: str) -> FilePath:
    """Returns ``path`` as a clean relative path.

    Backslashes become slashes, empty and ``.`` segments are dropped and
    ``..`` segments pop their parent.

    Raises:
        CorruptedPathDetected: If the path holds control characters.
        PathTraversalDetected: If ``..`` would climb above the root.
    """
    if _CONTROL_CHARACTERS.search(path):
        raise CorruptedPathDetected.for_path(path)

    parts = []
    for part in path.replace("\\", "/").split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if not parts:
                raise PathTraversalDetected.for_path(path)
            parts.pop()
            continue
        parts.append(part)
    return FilePath("/".join(parts))
