"""Result records describing what each patch directive did."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class PatchOutcome(str, Enum):
    """How a single patch directive ended."""

    APPLIED = "applied"
    SKIPPED = "skipped"
    RESOURCE_UNAVAILABLE = "resource_unavailable"
    TYPE_MISMATCH = "type_mismatch"
    ORIGINAL_MISMATCH = "original_mismatch"
    PATTERN_NOT_FOUND = "pattern_not_found"


class MemoryPatchKind(str, Enum):
    DIRECT = "direct"
    SEARCH = "search"
    HOOK = "hook"


class FilePatchResult(BaseModel):
    model_config = ConfigDict(frozen=False)

    disc: str
    external: str
    outcome: PatchOutcome


class MemoryPatchResult(BaseModel):
    model_config = ConfigDict(frozen=False)

    kind: MemoryPatchKind
    outcome: PatchOutcome
    address: Optional[int] = None  # where bytes were (or would have been) written
    bytes_written: int = 0
    hooks_removed: int = 0  # intercepts invalidated by the write


class SavegameRedirect(BaseModel):
    model_config = ConfigDict(frozen=False)

    path: str  # resolved host folder
    clone: bool = True
