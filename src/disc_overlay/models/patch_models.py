"""Patch directive models.

These are produced by whatever parses a patch-description document; the
overlay only reads them.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from disc_overlay.models.protocols import ExternalDataLoader


def _coerce_hex(value: Any) -> Any:
    """Accept ``"0x4e800020"`` / ``"4e800020"`` style strings for byte fields."""
    if isinstance(value, str):
        text = value.strip()
        if text[:2].lower() == "0x":
            text = text[2:]
        return bytes.fromhex(text)
    return value


class FilePatch(BaseModel):
    """Replace or extend a disc file with (part of) an external file."""

    model_config = ConfigDict(frozen=False)

    disc: str  # "/path/in/disc", "main.dol", or a bare filename
    external: str  # sandboxed path handed to the loader
    offset: int = Field(default=0, ge=0)  # target offset in the disc file (low two bits ignored)
    fileoffset: int = Field(default=0, ge=0)  # where to start reading the external file
    length: int = Field(default=0, ge=0)  # 0 means "everything after fileoffset"
    resize: bool = True
    create: bool = False


class FolderPatch(BaseModel):
    """Apply every file of an external folder onto a disc folder."""

    model_config = ConfigDict(frozen=False)

    disc: str = ""
    external: str
    recursive: bool = True
    resize: bool = True
    create: bool = False
    length: int = Field(default=0, ge=0)


class MemoryPatch(BaseModel):
    """Patch bytes in the live memory image."""

    model_config = ConfigDict(frozen=False)

    offset: int = Field(default=0, ge=0)
    value: bytes = b""
    valuefile: str = ""  # takes precedence over value when set
    original: bytes = b""
    search: bool = False
    align: int = Field(default=1, ge=0)  # search stride
    ocarina: bool = False

    @field_validator("value", "original", mode="before")
    @classmethod
    def _parse_hex(cls, value: Any) -> Any:
        return _coerce_hex(value)


class SavegamePatch(BaseModel):
    """Redirect the savegame folder to an external location."""

    model_config = ConfigDict(frozen=False)

    external: str
    clone: bool = True


class Patch(BaseModel):
    """One group of directives sharing an external data loader."""

    model_config = ConfigDict(frozen=False, arbitrary_types_allowed=True)

    name: str = ""
    file_patches: list[FilePatch] = Field(default_factory=list)
    folder_patches: list[FolderPatch] = Field(default_factory=list)
    memory_patches: list[MemoryPatch] = Field(default_factory=list)
    savegame_patches: list[SavegamePatch] = Field(default_factory=list)
    loader: Optional[ExternalDataLoader] = Field(default=None, exclude=True)
