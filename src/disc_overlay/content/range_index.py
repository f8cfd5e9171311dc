"""Immutable range index over finalized segments.

Segments are kept sorted by end offset so that the segment holding any
offset is found with a single ``bisect_right`` over the end offsets.
"""

import logging
import os
from bisect import bisect_right
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Optional

from disc_overlay.content.exceptions import (
    ContentReadError,
    OutOfRangeError,
    OverlappingSegmentError,
)
from disc_overlay.models import (
    FileNode,
    FileRegion,
    FixedFill,
    NestedContainer,
    RawBuffer,
    Segment,
)

logger = logging.getLogger(__name__)


def read_source(source, delta: int, length: int) -> bytes:
    """Read ``length`` bytes starting ``delta`` bytes into a content source.

    Raises:
        ContentReadError: If the source cannot supply all requested bytes.
    """
    if isinstance(source, FileRegion):
        try:
            with open(source.path, "rb") as f:
                f.seek(source.file_offset + delta)
                data = f.read(length)
        except OSError as e:
            raise ContentReadError(f"Failed to read {source.path}: {e}") from e
        if len(data) != length:
            raise ContentReadError(
                f"Short read from {source.path}: wanted {length} bytes, got {len(data)}"
            )
        return data

    if isinstance(source, RawBuffer):
        begin = source.start + delta
        data = source.data[begin:begin + length]
        if len(data) != length:
            raise ContentReadError(
                f"Buffer too small: wanted {length} bytes at {begin}, got {len(data)}"
            )
        return bytes(data)

    if isinstance(source, NestedContainer):
        return source.container.read(source.offset + delta, length)

    if isinstance(source, FixedFill):
        return bytes([source.byte_value]) * length

    raise TypeError(f"Unknown content source: {type(source).__name__}")


def host_file_segment(offset: int, path: str, max_size: Optional[int] = None) -> Segment:
    """Build a segment covering a host file, optionally capped at ``max_size``.

    A missing file yields a zero-length segment.
    """
    try:
        size = os.path.getsize(path)
    except OSError:
        logger.debug("Host file %s is not readable, adding empty segment", path)
        size = 0
    if max_size is not None:
        size = min(size, max_size)
    return Segment(offset=offset, size=size, source=FileRegion(path=str(path)))


class RangeIndex:
    """A sorted, non-overlapping, read-only collection of segments."""

    def __init__(self, segments: Iterable[Segment] = ()):
        ordered = sorted((s for s in segments if s.size > 0), key=lambda s: s.end)
        for previous, current in zip(ordered, ordered[1:]):
            if current.offset < previous.end:
                raise OverlappingSegmentError(
                    f"Segment [{current.offset}, {current.end}) overlaps "
                    f"[{previous.offset}, {previous.end})"
                )
        self._segments: tuple[Segment, ...] = tuple(
            s.model_copy() for s in ordered
        )
        self._ends: list[int] = [s.end for s in self._segments]

    @classmethod
    def from_file_node(cls, node: FileNode, base_offset: int = 0) -> "RangeIndex":
        """Freeze a file's segment list, shifting every segment by ``base_offset``."""
        segments = []
        for segment in node.segments:
            end = min(segment.end, node.size)
            if end <= segment.offset:
                continue
            segments.append(Segment(
                offset=segment.offset + base_offset,
                size=end - segment.offset,
                source=segment.source,
            ))
        return cls(segments)

    @classmethod
    def from_host_file(cls, path: Path | str) -> "RangeIndex":
        return cls([host_file_segment(0, str(path))])

    @property
    def size(self) -> int:
        """End offset of the last segment."""
        return self._ends[-1] if self._ends else 0

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)

    def segment_at(self, offset: int) -> Optional[Segment]:
        """Return the segment covering ``offset``, or None if it falls in a gap."""
        idx = bisect_right(self._ends, offset)
        if idx < len(self._segments) and self._segments[idx].offset <= offset:
            return self._segments[idx]
        return None

    def read(self, offset: int, length: int) -> bytes:
        """Read ``length`` bytes starting at ``offset``.

        Args:
            offset: First byte to read.
            length: Number of bytes to read.

        Returns:
            Exactly ``length`` bytes.

        Raises:
            OutOfRangeError: If any requested byte is not covered by a segment.
            ContentReadError: If a segment's source fails to produce its bytes.
        """
        if offset < 0 or length < 0:
            raise OutOfRangeError(f"Invalid read of {length} bytes at {offset}")

        out = bytearray()
        position = offset
        remaining = length
        idx = bisect_right(self._ends, position)
        while remaining > 0:
            if idx >= len(self._segments) or self._segments[idx].offset > position:
                raise OutOfRangeError(
                    f"No content at offset {position} (read of {length} bytes at {offset})"
                )
            segment = self._segments[idx]
            chunk = min(remaining, segment.end - position)
            out += read_source(segment.source, position - segment.offset, chunk)
            position += chunk
            remaining -= chunk
            idx += 1
        return bytes(out)
