"""Segment splicing and finalized range reads."""

from disc_overlay.content.exceptions import (
    ContentError,
    ContentReadError,
    OutOfRangeError,
    OverlappingSegmentError,
)
from disc_overlay.content.range_index import RangeIndex, host_file_segment, read_source
from disc_overlay.content.splice import (
    PATCH_OFFSET_MASK,
    apply_file_patch,
    apply_patch_to_file,
    split_segment,
)

__all__ = [
    "PATCH_OFFSET_MASK",
    "ContentError",
    "ContentReadError",
    "OutOfRangeError",
    "OverlappingSegmentError",
    "RangeIndex",
    "apply_file_patch",
    "apply_patch_to_file",
    "host_file_segment",
    "read_source",
    "split_segment",
]
