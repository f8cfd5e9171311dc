"""Sandboxed resolution of externally authored relative paths.

External paths come from patch documents that may be written by anyone, so
every path is resolved purely lexically against one of two roots and is
rejected as soon as it tries to climb above that root:

- a path starting with ``/`` is relative to the SD root;
- any other path is relative to the patch root.

Only ``/`` separates path components. A ``.`` component is ignored, ``..``
removes the previous component and a component made only of three or more
dots is always rejected.
"""

import logging
import os
import posixpath

from disc_overlay.loaders.exceptions import PathEscapeError

logger = logging.getLogger(__name__)

SEPARATOR = "/"

# Host separators other than "/" are filename characters to a patch
# document but would act as separators here, so they are refused.
FOREIGN_SEPARATORS: tuple[str, ...] = tuple(
    sep for sep in {os.sep, os.altsep} if sep and sep != SEPARATOR
)


def canonicalize(
    relative_path: str,
    sd_root: str,
    patch_root: str,
    foreign_separators: tuple[str, ...] = FOREIGN_SEPARATORS,
) -> str:
    """Resolve an external path against the SD root or the patch root.

    Args:
        relative_path: Path as written in the patch document.
        sd_root: Root used for paths starting with ``/``.
        patch_root: Root used for every other path.
        foreign_separators: Characters that make a path unacceptable.

    Returns:
        The root joined with the normalized components.

    Raises:
        PathEscapeError: If the path climbs above its root or holds a
            component the sandbox refuses.
    """
    for sep in foreign_separators:
        if sep in relative_path:
            raise PathEscapeError(f"Path contains a foreign separator {sep!r}: {relative_path}")

    result = sd_root if relative_path.startswith(SEPARATOR) else patch_root
    appended: list[str] = []

    for element in relative_path.strip(SEPARATOR).split(SEPARATOR):
        if element in ("", "."):
            continue
        if element == "..":
            if not appended:
                raise PathEscapeError(f"Path escapes its root: {relative_path}")
            appended.pop()
        elif set(element) == {"."}:
            raise PathEscapeError(f"Path has an all-dots component {element!r}: {relative_path}")
        else:
            appended.append(element)

    for element in appended:
        result += SEPARATOR + element
    return result


def resolve_patch_root(sd_root: str, document_path: str, root: str = "") -> str:
    """Work out the folder that relative external paths start from.

    The folder holding the patch document is the default. A non-empty
    ``root`` is resolved like any external path (``/``-prefixed against the
    SD root, otherwise against the document's folder) and replaces the
    default unless it escapes its root.
    """
    patch_root = posixpath.dirname(document_path.replace(os.sep, SEPARATOR))
    if not root:
        return patch_root
    try:
        return canonicalize(root, sd_root, patch_root)
    except PathEscapeError as e:
        logger.warning("Ignoring patch root %r: %s", root, e)
        return patch_root
