"""Content segment models: where each byte range of a composed file comes from."""

from typing import Annotated, Literal, Protocol, Union, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


@runtime_checkable
class ReadableContainer(Protocol):
    """Anything that can serve a byte range, typically a RangeIndex."""

    def read(self, offset: int, length: int) -> bytes:
        """Return exactly ``length`` bytes starting at ``offset``."""


class FileRegion(BaseModel):
    """Bytes read from a host file starting at ``file_offset``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"
    path: str
    file_offset: int = 0


class RawBuffer(BaseModel):
    """Bytes taken verbatim from an owned in-memory buffer.

    ``start`` is the position in ``data`` of the segment's first byte, so a
    split only advances ``start`` and never copies the buffer.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["buffer"] = "buffer"
    data: bytes
    start: int = 0


class NestedContainer(BaseModel):
    """Bytes produced by reading another composed container at ``offset``."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["container"] = "container"
    container: ReadableContainer
    offset: int = 0
    extra: int = 0  # opaque to the overlay; carried through splits unchanged


class FixedFill(BaseModel):
    """A run of identical bytes, used for padding."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["fill"] = "fill"
    byte_value: int = Field(default=0, ge=0, le=0xFF)


ContentSource = Annotated[
    Union[FileRegion, RawBuffer, NestedContainer, FixedFill],
    Field(discriminator="kind"),
]


class Segment(BaseModel):
    """Bytes ``[offset, offset + size)`` of a file come from ``source``."""

    model_config = ConfigDict(frozen=False)

    offset: int = Field(ge=0)
    size: int = Field(ge=0)
    source: ContentSource

    @property
    def end(self) -> int:
        return self.offset + self.size


def advance_source(source: ContentSource, delta: int) -> ContentSource:
    """Return a copy of ``source`` whose first byte is ``delta`` bytes later."""
    if delta == 0:
        return source
    if isinstance(source, FileRegion):
        return source.model_copy(update={"file_offset": source.file_offset + delta})
    if isinstance(source, RawBuffer):
        return source.model_copy(update={"start": source.start + delta})
    if isinstance(source, NestedContainer):
        return source.model_copy(update={"offset": source.offset + delta})
    if isinstance(source, FixedFill):
        return source
    raise TypeError(f"Unknown content source: {type(source).__name__}")
