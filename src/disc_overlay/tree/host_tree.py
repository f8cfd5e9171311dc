"""Build base trees from host folders and freeze patched trees for reading."""

import logging
import os
from pathlib import Path

from disc_overlay.content.range_index import RangeIndex, host_file_segment
from disc_overlay.models import FileNode, FolderNode
from disc_overlay.tree.resolver import iter_files

logger = logging.getLogger(__name__)

# Files are read back in chunks this size when exporting.
EXPORT_CHUNK_SIZE = 4 * 1024 * 1024


def file_node_from_host(path: Path | str, name: str | None = None) -> FileNode:
    """A file node whose whole content is one region of a host file."""
    segment = host_file_segment(0, str(path))
    return FileNode(
        name=name if name is not None else Path(path).name,
        size=segment.size,
        segments=[segment] if segment.size else [],
    )


def build_tree_from_directory(directory: Path | str, name: str = "") -> FolderNode:
    """Mirror a host folder as a tree, children sorted case-insensitively.

    Symlinks are skipped so the tree never reaches outside ``directory``.
    """
    folder = FolderNode(name=name)
    with os.scandir(directory) as entries:
        ordered = sorted(entries, key=lambda e: e.name.lower())
    for entry in ordered:
        if entry.is_symlink():
            continue
        if entry.is_dir():
            folder.children.append(build_tree_from_directory(entry.path, entry.name))
        elif entry.is_file():
            folder.children.append(file_node_from_host(entry.path, entry.name))
    return folder


def freeze_tree(root: FolderNode) -> dict[str, RangeIndex]:
    """Freeze every file below ``root`` into a range index keyed by its path."""
    return {path: RangeIndex.from_file_node(node) for path, node in iter_files(root.children)}


def export_file(index: RangeIndex, size: int, destination: Path) -> None:
    """Write ``size`` bytes of a frozen file to ``destination``."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    with open(destination, "wb") as f:
        position = 0
        while position < size:
            chunk = min(EXPORT_CHUNK_SIZE, size - position)
            f.write(index.read(position, chunk))
            position += chunk


def export_tree(root: FolderNode, output_dir: Path | str) -> int:
    """Write every file of a tree below ``output_dir``; return the file count.

    Raises:
        OutOfRangeError: If a file has a gap no segment covers.
    """
    output = Path(output_dir)
    count = 0
    for path, node in iter_files(root.children):
        export_file(RangeIndex.from_file_node(node), node.size, output / path)
        count += 1
    logger.info("Exported %d files to %s", count, output)
    return count
