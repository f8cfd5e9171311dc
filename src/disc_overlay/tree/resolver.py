"""Locate (or create) file nodes in a tree by path or by bare filename."""

import logging
import string
from collections.abc import Iterator
from typing import Optional

from disc_overlay.models import FileNode, FolderNode
from disc_overlay.tree.exceptions import NodeNotFoundError, TreeError, TypeMismatchError

logger = logging.getLogger(__name__)


# Only A-Z fold; other letters compare exactly.
_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def names_equal(a: str, b: str) -> bool:
    """Case-insensitive name comparison used for every tree lookup."""
    return a.translate(_ASCII_LOWER) == b.translate(_ASCII_LOWER)


def _find_child(children: list, name: str):
    for child in children:
        if names_equal(child.name, name):
            return child
    return None


def resolve_file_node(path: str, children: list, create_if_missing: bool) -> FileNode:
    """Walk ``path`` from a folder's children down to a file node.

    Args:
        path: ``/``-separated path relative to ``children``'s folder.
        children: Child list of the folder the path starts in.
        create_if_missing: Create missing folders and the file on the way.

    Returns:
        The file node at ``path``.

    Raises:
        TypeMismatchError: If a component's kind disagrees with the path.
        NodeNotFoundError: If a component is missing and creation is off.
    """
    while True:
        head, sep, rest = path.partition("/")
        is_file = not sep
        if not head:
            raise NodeNotFoundError(f"Empty path component in {path!r}")

        node = _find_child(children, head)
        if node is None:
            if not create_if_missing:
                raise NodeNotFoundError(f"No node named {head!r}")
            node = FileNode(name=head) if is_file else FolderNode(name=head)
            children.append(node)
        elif node.is_file != is_file:
            expected = "file" if is_file else "folder"
            raise TypeMismatchError(f"{head!r} exists but is not a {expected}")

        if is_file:
            return node
        children = node.children
        path = rest


def find_or_create(path: str, children: list, create_if_missing: bool) -> Optional[FileNode]:
    """Like :func:`resolve_file_node`, but returns None instead of raising."""
    try:
        return resolve_file_node(path, children, create_if_missing)
    except TreeError as e:
        logger.debug("Cannot resolve %r: %s", path, e)
        return None


def find_by_filename(filename: str, children: list) -> Optional[FileNode]:
    """Return the first file anywhere below ``children`` named ``filename``.

    The search is depth-first in child order: a folder is searched completely
    before its later siblings are looked at.
    """
    for node in children:
        if node.is_folder:
            found = find_by_filename(filename, node.children)
            if found is not None:
                return found
        elif names_equal(node.name, filename):
            return node
    return None


def iter_files(children: list, prefix: str = "") -> Iterator[tuple[str, FileNode]]:
    """Yield ``(path, file_node)`` for every file below ``children``."""
    for node in children:
        path = f"{prefix}/{node.name}" if prefix else node.name
        if node.is_folder:
            yield from iter_files(node.children, path)
        else:
            yield path, node
