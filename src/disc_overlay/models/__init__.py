"""Data models for the disc overlay."""

from disc_overlay.models.content_models import (
    ContentSource,
    FileRegion,
    FixedFill,
    NestedContainer,
    RawBuffer,
    ReadableContainer,
    Segment,
    advance_source,
)
from disc_overlay.models.tree_models import FileNode, FolderNode, TreeNode
from disc_overlay.models.protocols import (
    ExternalDataLoader,
    FolderEntry,
    HookRegistry,
    MemoryImage,
)
from disc_overlay.models.patch_models import (
    FilePatch,
    FolderPatch,
    MemoryPatch,
    Patch,
    SavegamePatch,
)
from disc_overlay.models.report_models import (
    FilePatchResult,
    MemoryPatchKind,
    MemoryPatchResult,
    PatchOutcome,
    SavegameRedirect,
)

__all__ = [
    "ContentSource",
    "ExternalDataLoader",
    "FileNode",
    "FilePatch",
    "FilePatchResult",
    "FileRegion",
    "FixedFill",
    "FolderEntry",
    "FolderNode",
    "FolderPatch",
    "HookRegistry",
    "MemoryImage",
    "MemoryPatch",
    "MemoryPatchKind",
    "MemoryPatchResult",
    "NestedContainer",
    "Patch",
    "PatchOutcome",
    "RawBuffer",
    "ReadableContainer",
    "SavegamePatch",
    "SavegameRedirect",
    "Segment",
    "TreeNode",
    "advance_source",
]
