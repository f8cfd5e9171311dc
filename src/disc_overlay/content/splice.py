"""Splice builder: edits a file's segment list in place to apply one patch."""

import logging

from disc_overlay.models import (
    ExternalDataLoader,
    FileNode,
    FilePatch,
    FixedFill,
    Segment,
    advance_source,
)

logger = logging.getLogger(__name__)

# Patch offsets are honoured at 4-byte granularity only; the low two bits
# are dropped.
PATCH_OFFSET_MASK = ~0x3


def split_segment(segment: Segment, split_at: int) -> tuple[Segment, Segment]:
    """Split a segment into two halves at an absolute offset.

    Args:
        segment: Segment to split.
        split_at: Offset strictly inside the segment.

    Returns:
        ``(before, after)``; ``after``'s source is advanced by ``before.size``.
    """
    if not segment.offset < split_at < segment.end:
        raise ValueError(
            f"Split point {split_at} is not inside [{segment.offset}, {segment.end})"
        )
    before_size = split_at - segment.offset
    before = Segment(offset=segment.offset, size=before_size, source=segment.source)
    after = Segment(
        offset=split_at,
        size=segment.end - split_at,
        source=advance_source(segment.source, before_size),
    )
    return before, after


def _split_at_patch_bounds(content: list[Segment], patch_start: int, patch_end: int) -> None:
    i = 0
    while i < len(content):
        source_start = content[i].offset
        source_end = content[i].end
        if source_start < patch_start < source_end:
            content[i:i + 1] = split_segment(content[i], patch_start)
            # the right half may still contain patch_end
            i += 1
            continue
        if source_start < patch_end < source_end:
            content[i:i + 1] = split_segment(content[i], patch_end)
        i += 1


def _remove_covered(content: list[Segment], patch_start: int, patch_end: int) -> int:
    """Drop segments inside ``[patch_start, patch_end)``; return where they were."""
    insert_where = len(content)
    for i, segment in enumerate(content):
        if segment.offset >= patch_start:
            insert_where = i
            break
    stop = insert_where
    while stop < len(content) and content[stop].end <= patch_end:
        stop += 1
    del content[insert_where:stop]
    return insert_where


def apply_patch_to_file(
    node: FileNode,
    loader: ExternalDataLoader,
    external_path: str,
    patch_offset: int,
    external_offset: int = 0,
    length: int = 0,
    resize: bool = False,
) -> bool:
    """Splice (part of) an external file into a file node.

    Args:
        node: File node to edit in place.
        loader: Loader used to size the external file and build its segment.
        external_path: Sandboxed path of the external file.
        patch_offset: Offset in the file where the patch data starts.
        external_offset: Offset into the external file to start from; clamped
            to the external file's size.
        length: Number of bytes the patch covers; 0 uses everything after
            ``external_offset``. Bytes beyond the external data are zero-filled.
        resize: When True the file ends exactly where the patch ends, otherwise
            the file only ever grows.

    Returns:
        False if the external file is unavailable (nothing changes), else True.

    Raises:
        ValueError: If an offset or the length is negative; the node is
            left untouched.
    """
    if min(patch_offset, external_offset, length) < 0:
        raise ValueError(
            f"Negative patch bounds: offset={patch_offset} "
            f"fileoffset={external_offset} length={length}"
        )

    raw_external_size = loader.get_size(external_path)
    if raw_external_size is None:
        logger.debug("External file %s unavailable, skipping patch", external_path)
        return False

    content = node.segments

    external_start = min(external_offset, raw_external_size)
    external_size = raw_external_size - external_start

    patch_start = patch_offset
    patch_size = external_size if length == 0 else length
    patch_end = patch_start + patch_size

    target_size = patch_end if resize else max(node.size, patch_end)

    if patch_start >= node.size:
        # Nothing existing is touched, the file is only extended.
        if patch_start > node.size:
            content.append(Segment(
                offset=node.size,
                size=patch_start - node.size,
                source=FixedFill(byte_value=0),
            ))
        insert_where = len(content)
    else:
        _split_at_patch_bounds(content, patch_start, patch_end)
        insert_where = _remove_covered(content, patch_start, patch_end)

    if patch_size > 0 and external_size > 0:
        segment = loader.make_content_source(
            external_path,
            external_start,
            min(patch_size, external_size),
            patch_start,
        )
        content.insert(insert_where, segment)
        insert_where += 1

    # The patch declares more bytes than the external file provides.
    if external_size < patch_size:
        content.insert(insert_where, Segment(
            offset=patch_start + external_size,
            size=patch_size - external_size,
            source=FixedFill(byte_value=0),
        ))

    node.size = target_size

    while content and content[-1].offset >= target_size:
        content.pop()
    if content and content[-1].end > target_size:
        content[-1].size = target_size - content[-1].offset

    return True


def apply_file_patch(node: FileNode, loader: ExternalDataLoader, file_patch: FilePatch) -> bool:
    """Apply a file directive to a node, dropping the low two offset bits."""
    return apply_patch_to_file(
        node,
        loader,
        file_patch.external,
        file_patch.offset & PATCH_OFFSET_MASK,
        file_patch.fileoffset,
        file_patch.length,
        file_patch.resize,
    )
