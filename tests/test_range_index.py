"""Tests for the immutable range index."""

from pathlib import Path

import pytest

from disc_overlay.content.exceptions import (
    ContentReadError,
    OutOfRangeError,
    OverlappingSegmentError,
)
from disc_overlay.content.range_index import RangeIndex, host_file_segment, read_source
from disc_overlay.models import (
    FileNode,
    FileRegion,
    FixedFill,
    NestedContainer,
    RawBuffer,
    Segment,
)


def buffer_segment(offset: int, data: bytes, start: int = 0) -> Segment:
    return Segment(offset=offset, size=len(data) - start, source=RawBuffer(data=data, start=start))


class TestReadSource:

    def test_raw_buffer_slice(self):
        assert read_source(RawBuffer(data=b"0123456789", start=2), 3, 4) == b"5678"

    def test_fixed_fill(self):
        assert read_source(FixedFill(byte_value=0x5A), 100, 3) == b"ZZZ"

    def test_file_region(self, tmp_path: Path):
        path = tmp_path / "data.bin"
        path.write_bytes(b"abcdefghij")
        assert read_source(FileRegion(path=str(path), file_offset=4), 1, 3) == b"fgh"

    def test_file_region_short_read(self, tmp_path: Path):
        path = tmp_path / "data.bin"
        path.write_bytes(b"abc")
        with pytest.raises(ContentReadError):
            read_source(FileRegion(path=str(path)), 0, 10)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ContentReadError):
            read_source(FileRegion(path=str(tmp_path / "gone.bin")), 0, 1)

    def test_raw_buffer_too_small(self):
        with pytest.raises(ContentReadError):
            read_source(RawBuffer(data=b"ab"), 1, 5)

    def test_nested_container_recurses(self):
        inner = RangeIndex([buffer_segment(0, b"hello world")])
        source = NestedContainer(container=inner, offset=6)
        assert read_source(source, 1, 3) == b"orl"


class TestRangeIndex:

    def test_read_spanning_segments(self):
        index = RangeIndex([
            buffer_segment(0, b"abcd"),
            Segment(offset=4, size=3, source=FixedFill(byte_value=0x2D)),
            buffer_segment(7, b"wxyz"),
        ])
        assert index.read(2, 7) == b"cd---wx"
        assert index.size == 11

    def test_segments_are_sorted_on_construction(self):
        index = RangeIndex([buffer_segment(4, b"5678"), buffer_segment(0, b"1234")])
        assert [s.offset for s in index] == [0, 4]
        assert index.read(0, 8) == b"12345678"

    def test_zero_length_segments_are_dropped(self):
        index = RangeIndex([
            buffer_segment(0, b"ab"),
            Segment(offset=2, size=0, source=FixedFill()),
            buffer_segment(2, b"cd"),
        ])
        assert len(index) == 2

    def test_overlapping_segments_rejected(self):
        with pytest.raises(OverlappingSegmentError):
            RangeIndex([buffer_segment(0, b"abcd"), buffer_segment(2, b"xy")])

    def test_read_into_gap_fails(self):
        index = RangeIndex([buffer_segment(0, b"ab"), buffer_segment(4, b"ef")])
        with pytest.raises(OutOfRangeError):
            index.read(0, 6)

    def test_read_past_end_fails(self):
        index = RangeIndex([buffer_segment(0, b"ab")])
        with pytest.raises(OutOfRangeError):
            index.read(1, 2)

    def test_zero_length_read(self):
        assert RangeIndex().read(123, 0) == b""

    def test_negative_read_rejected(self):
        with pytest.raises(OutOfRangeError):
            RangeIndex([buffer_segment(0, b"ab")]).read(-1, 1)

    def test_segment_at(self):
        index = RangeIndex([buffer_segment(0, b"ab"), buffer_segment(4, b"ef")])
        assert index.segment_at(1).offset == 0
        assert index.segment_at(4).offset == 4
        assert index.segment_at(3) is None
        assert index.segment_at(6) is None

    def test_nested_index_reads_through(self):
        inner = RangeIndex([buffer_segment(0, b"0123456789")])
        outer = RangeIndex([
            buffer_segment(0, b"<"),
            Segment(offset=1, size=4, source=NestedContainer(container=inner, offset=3)),
            buffer_segment(5, b">"),
        ])
        assert outer.read(0, 6) == b"<3456>"


class TestFromFileNode:

    def test_shifts_by_base_offset(self):
        node = FileNode(name="a", size=4, segments=[buffer_segment(0, b"abcd")])
        index = RangeIndex.from_file_node(node, base_offset=0x100)
        assert index.read(0x101, 2) == b"bc"

    def test_clips_segments_to_file_size(self):
        node = FileNode(name="a", size=3, segments=[buffer_segment(0, b"abcd")])
        index = RangeIndex.from_file_node(node)
        assert index.size == 3
        with pytest.raises(OutOfRangeError):
            index.read(0, 4)


class TestHostFiles:

    def test_host_file_segment_sizes_file(self, tmp_path: Path):
        path = tmp_path / "f.bin"
        path.write_bytes(b"x" * 10)
        segment = host_file_segment(0x40, str(path))
        assert (segment.offset, segment.size) == (0x40, 10)

    def test_host_file_segment_caps_size(self, tmp_path: Path):
        path = tmp_path / "f.bin"
        path.write_bytes(b"x" * 10)
        assert host_file_segment(0, str(path), max_size=4).size == 4

    def test_missing_host_file_gives_empty_segment(self, tmp_path: Path):
        assert host_file_segment(0, str(tmp_path / "missing.bin")).size == 0

    def test_from_host_file(self, tmp_path: Path):
        path = tmp_path / "f.bin"
        path.write_bytes(b"0123456789")
        assert RangeIndex.from_host_file(path).read(5, 5) == b"56789"
