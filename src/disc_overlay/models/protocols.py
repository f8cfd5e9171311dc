"""Collaborator interfaces consumed by the overlay and memory engines."""

from typing import Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from disc_overlay.models.content_models import Segment


class FolderEntry(BaseModel):
    """One child of an external folder."""

    model_config = ConfigDict(frozen=True)

    name: str
    is_directory: bool


@runtime_checkable
class ExternalDataLoader(Protocol):
    """Sandboxed access to the external files a patch refers to."""

    def get_size(self, relative_path: str) -> Optional[int]:
        """Size of an external file, or None if it is missing or unreachable."""

    def get_contents(self, relative_path: str) -> bytes:
        """Full contents of an external file; empty on failure."""

    def get_folder_entries(self, relative_path: str) -> list[FolderEntry]:
        """Children of an external folder; empty on failure."""

    def make_content_source(
        self,
        relative_path: str,
        external_offset: int,
        size: int,
        target_offset: int,
    ) -> Segment:
        """Segment placing ``size`` external bytes at ``target_offset``."""

    def resolve_savegame_path(self, relative_path: str) -> Optional[str]:
        """Host location for a redirected savegame folder."""


@runtime_checkable
class MemoryImage(Protocol):
    """Byte-addressable live memory; accesses may fail on unmapped addresses."""

    def try_read_byte(self, address: int) -> Optional[int]:
        ...

    def try_write_byte(self, value: int, address: int) -> bool:
        ...


@runtime_checkable
class HookRegistry(Protocol):
    """Registered intercepts that must be dropped when their code is rewritten."""

    def unpatch_range(self, start: int, end: int) -> int:
        """Remove intercepts overlapping ``[start, end)`` and return how many."""
