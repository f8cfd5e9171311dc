"""External data loaders and the path sandbox they share."""

from disc_overlay.loaders.exceptions import (
    LoaderError,
    PathEscapeError,
    ResourceUnavailableError,
)
from disc_overlay.loaders.sandbox import (
    FOREIGN_SEPARATORS,
    canonicalize,
    resolve_patch_root,
)
from disc_overlay.loaders.host_fs import HostFileDataLoader
from disc_overlay.loaders.in_memory import InMemoryDataLoader

__all__ = [
    "FOREIGN_SEPARATORS",
    "HostFileDataLoader",
    "InMemoryDataLoader",
    "LoaderError",
    "PathEscapeError",
    "ResourceUnavailableError",
    "canonicalize",
    "resolve_patch_root",
]
