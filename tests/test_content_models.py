"""Tests for content source and segment models."""

import pytest
from pydantic import ValidationError

from disc_overlay.content.range_index import RangeIndex
from disc_overlay.models import (
    FileNode,
    FileRegion,
    FixedFill,
    FolderNode,
    NestedContainer,
    RawBuffer,
    Segment,
    advance_source,
)


class TestAdvanceSource:
    def test_file_region_advances_file_offset(self):
        source = FileRegion(path="/a.bin", file_offset=10)
        assert advance_source(source, 5).file_offset == 15
        assert source.file_offset == 10

    def test_raw_buffer_advances_start_without_copying_data(self):
        data = b"0123456789"
        source = RawBuffer(data=data)
        advanced = advance_source(source, 4)
        assert advanced.start == 4
        assert advanced.data is source.data

    def test_nested_container_advances_offset_and_keeps_extra(self):
        inner = RangeIndex([Segment(offset=0, size=4, source=FixedFill(byte_value=1))])
        source = NestedContainer(container=inner, offset=100, extra=7)
        advanced = advance_source(source, 3)
        assert advanced.offset == 103
        assert advanced.extra == 7
        assert advanced.container is inner

    def test_fixed_fill_is_unchanged(self):
        source = FixedFill(byte_value=0xAA)
        assert advance_source(source, 99) == source

    @pytest.mark.parametrize("source", [
        FileRegion(path="/a.bin"),
        RawBuffer(data=b"abc"),
        FixedFill(byte_value=7),
    ])
    def test_result_is_same_source_kind(self, source):
        advanced = advance_source(source, 2)
        assert type(advanced) is type(source)
        assert advanced.kind == source.kind

    def test_zero_delta_returns_same_object(self):
        source = FileRegion(path="/a.bin")
        assert advance_source(source, 0) is source

    def test_unknown_source_rejected(self):
        with pytest.raises(TypeError):
            advance_source(object(), 1)


class TestSegment:
    def test_end(self):
        segment = Segment(offset=10, size=5, source=FixedFill())
        assert segment.end == 15

    def test_zero_length_segment_is_legal(self):
        segment = Segment(offset=3, size=0, source=FixedFill())
        assert segment.end == 3

    def test_negative_size_rejected(self):
        with pytest.raises(ValidationError):
            Segment(offset=0, size=-1, source=FixedFill())

    def test_source_validated_from_dict_by_kind(self):
        segment = Segment.model_validate(
            {"offset": 0, "size": 2, "source": {"kind": "buffer", "data": b"hi"}}
        )
        assert isinstance(segment.source, RawBuffer)

    def test_fill_byte_must_fit_in_a_byte(self):
        with pytest.raises(ValidationError):
            FixedFill(byte_value=256)

    def test_nested_container_requires_readable_container(self):
        with pytest.raises(ValidationError):
            NestedContainer(container=object())


class TestTreeNodes:
    def test_kind_helpers(self):
        assert FileNode(name="a").is_file
        assert FolderNode(name="b").is_folder

    def test_folder_validates_children_by_kind(self):
        folder = FolderNode.model_validate({
            "name": "root",
            "children": [
                {"kind": "file", "name": "a.bin", "size": 0},
                {"kind": "folder", "name": "sub", "children": []},
            ],
        })
        assert isinstance(folder.children[0], FileNode)
        assert isinstance(folder.children[1], FolderNode)
