"""Patching of a live memory image."""

from disc_overlay.memory.exceptions import MemoryPatchError, ReturnInstructionNotFoundError
from disc_overlay.memory.image import ByteArrayMemory, Hook, HookTable, read_u32, write_u32
from disc_overlay.memory.engine import (
    BRANCH_OFFSET_MASK,
    BRANCH_OPCODE,
    RAM_BASE,
    RETURN_INSTRUCTION,
    apply_apploader_memory_patches,
    apply_direct_patch,
    apply_general_memory_patches,
    apply_hook_patch,
    apply_memory_patch,
    apply_ocarina_memory_patch,
    apply_search_memory_patch,
    apply_search_patch,
    encode_branch,
    memory_matches_at,
    memory_patch_value,
)

__all__ = [
    "BRANCH_OFFSET_MASK",
    "BRANCH_OPCODE",
    "RAM_BASE",
    "RETURN_INSTRUCTION",
    "ByteArrayMemory",
    "Hook",
    "HookTable",
    "MemoryPatchError",
    "ReturnInstructionNotFoundError",
    "apply_apploader_memory_patches",
    "apply_direct_patch",
    "apply_general_memory_patches",
    "apply_hook_patch",
    "apply_memory_patch",
    "apply_ocarina_memory_patch",
    "apply_search_memory_patch",
    "apply_search_patch",
    "encode_branch",
    "memory_matches_at",
    "memory_patch_value",
    "read_u32",
    "write_u32",
]
