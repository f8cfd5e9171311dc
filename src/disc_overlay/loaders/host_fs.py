"""External data loader backed by the host filesystem."""

import logging
import os
from typing import Optional

from disc_overlay.loaders.exceptions import PathEscapeError
from disc_overlay.loaders.sandbox import canonicalize, resolve_patch_root
from disc_overlay.models import FileRegion, FixedFill, FolderEntry, Segment

logger = logging.getLogger(__name__)


class HostFileDataLoader:
    """Serves external files from below an SD root and a patch root."""

    def __init__(self, sd_root: str, patch_root: str):
        """Initialize the loader.

        Args:
            sd_root: Folder standing in for the SD card root.
            patch_root: Folder that relative external paths start from.
        """
        self.sd_root = sd_root.rstrip("/")
        self.patch_root = patch_root.rstrip("/")

    @classmethod
    def for_document(cls, sd_root: str, document_path: str, root: str = "") -> "HostFileDataLoader":
        """Create a loader for a patch document with an optional ``root`` setting."""
        return cls(sd_root, resolve_patch_root(sd_root, document_path, root))

    def _resolve(self, relative_path: str) -> Optional[str]:
        try:
            path = canonicalize(relative_path, self.sd_root, self.patch_root)
        except PathEscapeError as e:
            logger.warning("Rejected external path: %s", e)
            return None

        # Symlinks below the root would lead outside it.
        current = self.sd_root if relative_path.startswith("/") else self.patch_root
        for part in path[len(current):].split("/"):
            if not part:
                continue
            current = f"{current}/{part}"
            if os.path.islink(current):
                logger.warning("Rejected external path through symlink: %s", current)
                return None
        return path

    def get_size(self, relative_path: str) -> Optional[int]:
        path = self._resolve(relative_path)
        if path is None or not os.path.isfile(path):
            return None
        try:
            return os.path.getsize(path)
        except OSError:
            return None

    def get_contents(self, relative_path: str) -> bytes:
        path = self._resolve(relative_path)
        if path is None:
            return b""
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            logger.debug("Cannot read %s: %s", path, e)
            return b""

    def get_folder_entries(self, relative_path: str) -> list[FolderEntry]:
        path = self._resolve(relative_path)
        if path is None:
            return []
        try:
            with os.scandir(path) as entries:
                children = [
                    FolderEntry(name=entry.name, is_directory=entry.is_dir(follow_symlinks=False))
                    for entry in entries
                    if not entry.is_symlink()
                ]
        except OSError as e:
            logger.debug("Cannot list %s: %s", path, e)
            return []
        return sorted(children, key=lambda c: c.name)

    def make_content_source(
        self,
        relative_path: str,
        external_offset: int,
        size: int,
        target_offset: int,
    ) -> Segment:
        path = self._resolve(relative_path)
        if path is None:
            return Segment(offset=target_offset, size=size, source=FixedFill(byte_value=0))
        return Segment(
            offset=target_offset,
            size=size,
            source=FileRegion(path=path, file_offset=external_offset),
        )

    def resolve_savegame_path(self, relative_path: str) -> Optional[str]:
        return self._resolve(relative_path)
