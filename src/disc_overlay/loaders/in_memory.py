"""External data loader over a nested dict, with host-loader path semantics.

Example:
    InMemoryDataLoader({
        "patch.bin": b"\\x00\\x01",
        "sd": {"music": {"track.brstm": b"..."}},
    }, sd_root="/sd", patch_root="/")
"""

import logging
from typing import Optional, Union

from disc_overlay.loaders.exceptions import PathEscapeError, ResourceUnavailableError
from disc_overlay.loaders.sandbox import canonicalize
from disc_overlay.models import FixedFill, FolderEntry, RawBuffer, Segment

logger = logging.getLogger(__name__)

Tree = dict[str, Union[bytes, "Tree"]]


class InMemoryDataLoader:
    """Loader whose external files live in memory.

    Paths are sandboxed exactly as for the host loader, then looked up in the
    tree (nested dicts are folders, bytes values are files).
    """

    def __init__(self, tree: Tree, sd_root: str = "", patch_root: str = ""):
        self._tree = tree
        self.sd_root = sd_root.rstrip("/")
        self.patch_root = patch_root.rstrip("/")

    def _lookup(self, relative_path: str) -> Union[bytes, Tree]:
        """Walk the tree to the node for ``relative_path``.

        Raises:
            PathEscapeError: If the path escapes its root.
            ResourceUnavailableError: If nothing exists at the path.
        """
        path = canonicalize(relative_path, self.sd_root, self.patch_root)
        node: Union[bytes, Tree] = self._tree
        for part in path.split("/"):
            if not part:
                continue
            if not isinstance(node, dict) or part not in node:
                raise ResourceUnavailableError(f"Not found: {path}")
            node = node[part]
        return node

    def _file(self, relative_path: str) -> Optional[bytes]:
        try:
            node = self._lookup(relative_path)
        except PathEscapeError as e:
            logger.warning("Rejected external path: %s", e)
            return None
        except ResourceUnavailableError:
            return None
        return bytes(node) if isinstance(node, (bytes, bytearray)) else None

    def get_size(self, relative_path: str) -> Optional[int]:
        data = self._file(relative_path)
        return None if data is None else len(data)

    def get_contents(self, relative_path: str) -> bytes:
        return self._file(relative_path) or b""

    def get_folder_entries(self, relative_path: str) -> list[FolderEntry]:
        try:
            node = self._lookup(relative_path)
        except (PathEscapeError, ResourceUnavailableError):
            return []
        if not isinstance(node, dict):
            return []
        return [
            FolderEntry(name=name, is_directory=isinstance(child, dict))
            for name, child in sorted(node.items())
        ]

    def make_content_source(
        self,
        relative_path: str,
        external_offset: int,
        size: int,
        target_offset: int,
    ) -> Segment:
        data = self._file(relative_path)
        if data is None:
            return Segment(offset=target_offset, size=size, source=FixedFill(byte_value=0))
        return Segment(
            offset=target_offset,
            size=size,
            source=RawBuffer(data=data, start=external_offset),
        )

    def resolve_savegame_path(self, relative_path: str) -> Optional[str]:
        try:
            return canonicalize(relative_path, self.sd_root, self.patch_root)
        except PathEscapeError as e:
            logger.warning("Rejected savegame path: %s", e)
            return None
