"""Memory patch engine: direct, search and hook (branch-rewrite) patches.

Reads and writes go through a ``MemoryImage`` and silently skip unmapped
bytes. Every write is followed by ``HookRegistry.unpatch_range`` over the
written range, so intercepts never outlive the code they were placed on.
"""

import logging
from typing import Optional

from disc_overlay.memory.exceptions import ReturnInstructionNotFoundError
from disc_overlay.memory.image import read_u32, write_u32
from disc_overlay.models import (
    HookRegistry,
    MemoryImage,
    MemoryPatch,
    MemoryPatchKind,
    MemoryPatchResult,
    Patch,
    PatchOutcome,
)

logger = logging.getLogger(__name__)

RAM_BASE = 0x80000000
INSTRUCTION_SIZE = 4

# PowerPC encodings
RETURN_INSTRUCTION = 0x4E800020  # blr
BRANCH_OPCODE = 0x48000000  # b
BRANCH_OFFSET_MASK = 0x03FFFFFC


def encode_branch(target: int, site: int) -> int:
    """Encode an unconditional relative branch placed at ``site`` jumping to ``target``."""
    return ((target - site) & BRANCH_OFFSET_MASK) | BRANCH_OPCODE


def memory_matches_at(image: MemoryImage, address: int, pattern: bytes) -> bool:
    """True if every byte of ``pattern`` is readable and equal at ``address``."""
    for i, expected in enumerate(pattern):
        if image.try_read_byte(address + i) != expected:
            return False
    return True


def _invalidate_hooks(hooks: HookRegistry, address: int, size: int) -> int:
    removed = hooks.unpatch_range(address, address + size)
    if removed:
        logger.warning(
            "Memory patch overlaps %d hook(s) at %08x (size: %d)", removed, address, size
        )
    return removed


def apply_direct_patch(
    image: MemoryImage,
    hooks: HookRegistry,
    address: int,
    value: bytes,
    original: bytes = b"",
) -> MemoryPatchResult:
    """Write ``value`` at ``address``, optionally only if ``original`` is there.

    Nothing is written when ``original`` is given and any byte differs.
    """
    if not value:
        return MemoryPatchResult(
            kind=MemoryPatchKind.DIRECT, outcome=PatchOutcome.SKIPPED, address=address
        )

    if original and not memory_matches_at(image, address, original):
        logger.debug("Original bytes differ at %08x, skipping", address)
        return MemoryPatchResult(
            kind=MemoryPatchKind.DIRECT,
            outcome=PatchOutcome.ORIGINAL_MISMATCH,
            address=address,
        )

    written = 0
    for i, byte in enumerate(value):
        if image.try_write_byte(byte, address + i):
            written += 1
    removed = _invalidate_hooks(hooks, address, len(value))
    return MemoryPatchResult(
        kind=MemoryPatchKind.DIRECT,
        outcome=PatchOutcome.APPLIED,
        address=address,
        bytes_written=written,
        hooks_removed=removed,
    )


def apply_search_patch(
    image: MemoryImage,
    hooks: HookRegistry,
    value: bytes,
    original: bytes,
    stride: int,
    scan_start: int,
    scan_length: int,
) -> MemoryPatchResult:
    """Write ``value`` over the first stride-aligned occurrence of ``original``."""
    if not original or stride <= 0:
        return MemoryPatchResult(kind=MemoryPatchKind.SEARCH, outcome=PatchOutcome.SKIPPED)

    for i in range(0, scan_length - (stride - 1), stride):
        address = scan_start + i
        if memory_matches_at(image, address, original):
            result = apply_direct_patch(image, hooks, address, value)
            return result.model_copy(update={"kind": MemoryPatchKind.SEARCH})

    logger.debug("Search pattern not found in %08x+%x", scan_start, scan_length)
    return MemoryPatchResult(kind=MemoryPatchKind.SEARCH, outcome=PatchOutcome.PATTERN_NOT_FOUND)


def apply_hook_patch(
    image: MemoryImage,
    hooks: HookRegistry,
    pattern: bytes,
    target: int,
    scan_start: int,
    scan_length: int,
    strict: bool = False,
) -> MemoryPatchResult:
    """Redirect the routine identified by ``pattern`` to ``target``.

    Finds ``pattern`` on a word boundary, then the first return instruction
    after it, and replaces that instruction with a branch to ``target``.

    Raises:
        ReturnInstructionNotFoundError: In strict mode, if the pattern is found
            but no return instruction follows it inside the scanned range.
    """
    if not pattern:
        return MemoryPatchResult(kind=MemoryPatchKind.HOOK, outcome=PatchOutcome.SKIPPED)

    for i in range(0, scan_length, INSTRUCTION_SIZE):
        if not memory_matches_at(image, scan_start + i, pattern):
            continue

        for j in range(i, scan_length, INSTRUCTION_SIZE):
            site = scan_start + j
            if read_u32(image, site) != RETURN_INSTRUCTION:
                continue
            written = write_u32(image, encode_branch(target, site), site)
            removed = hooks.unpatch_range(site, site + INSTRUCTION_SIZE)
            if removed:
                logger.warning("Hook patch overlaps %d hook(s) at %08x", removed, site)
            return MemoryPatchResult(
                kind=MemoryPatchKind.HOOK,
                outcome=PatchOutcome.APPLIED,
                address=site,
                bytes_written=written,
                hooks_removed=removed,
            )

        message = f"No return instruction after hook pattern at {scan_start + i:08x}"
        if strict:
            raise ReturnInstructionNotFoundError(message)
        logger.debug(message)
        return MemoryPatchResult(
            kind=MemoryPatchKind.HOOK,
            outcome=PatchOutcome.PATTERN_NOT_FOUND,
            address=scan_start + i,
        )

    return MemoryPatchResult(kind=MemoryPatchKind.HOOK, outcome=PatchOutcome.PATTERN_NOT_FOUND)


def memory_patch_value(patch: Patch, memory_patch: MemoryPatch) -> bytes:
    """The bytes to write: the value file's contents if set, else the literal."""
    if memory_patch.valuefile:
        if patch.loader is None:
            raise ValueError(f"Patch {patch.name!r} has no external data loader")
        return patch.loader.get_contents(memory_patch.valuefile)
    return memory_patch.value


def apply_memory_patch(
    patch: Patch,
    memory_patch: MemoryPatch,
    image: MemoryImage,
    hooks: HookRegistry,
    ram_base: int = RAM_BASE,
) -> MemoryPatchResult:
    """Apply a direct directive; its offset is relative to ``ram_base``."""
    if memory_patch.offset == 0:
        return MemoryPatchResult(kind=MemoryPatchKind.DIRECT, outcome=PatchOutcome.SKIPPED)
    return apply_direct_patch(
        image,
        hooks,
        memory_patch.offset | ram_base,
        memory_patch_value(patch, memory_patch),
        memory_patch.original,
    )


def apply_search_memory_patch(
    patch: Patch,
    memory_patch: MemoryPatch,
    image: MemoryImage,
    hooks: HookRegistry,
    scan_start: int,
    scan_length: int,
) -> MemoryPatchResult:
    if not memory_patch.original or memory_patch.align <= 0:
        return MemoryPatchResult(kind=MemoryPatchKind.SEARCH, outcome=PatchOutcome.SKIPPED)
    return apply_search_patch(
        image,
        hooks,
        memory_patch_value(patch, memory_patch),
        memory_patch.original,
        memory_patch.align,
        scan_start,
        scan_length,
    )


def apply_ocarina_memory_patch(
    patch: Patch,
    memory_patch: MemoryPatch,
    image: MemoryImage,
    hooks: HookRegistry,
    scan_start: int,
    scan_length: int,
    ram_base: int = RAM_BASE,
    strict: bool = False,
) -> MemoryPatchResult:
    """Hook directive: ``value`` is the pattern, ``offset`` the branch target."""
    if memory_patch.offset == 0:
        return MemoryPatchResult(kind=MemoryPatchKind.HOOK, outcome=PatchOutcome.SKIPPED)
    return apply_hook_patch(
        image,
        hooks,
        memory_patch_value(patch, memory_patch),
        memory_patch.offset | ram_base,
        scan_start,
        scan_length,
        strict=strict,
    )


def apply_general_memory_patches(
    patches: list[Patch],
    image: MemoryImage,
    hooks: HookRegistry,
    ram_size: int,
    ram_base: int = RAM_BASE,
) -> list[MemoryPatchResult]:
    """Apply direct and search directives; hook directives are left for the apploader."""
    results: list[MemoryPatchResult] = []
    for patch in patches:
        for memory_patch in patch.memory_patches:
            if memory_patch.ocarina:
                continue
            if memory_patch.search:
                results.append(apply_search_memory_patch(
                    patch, memory_patch, image, hooks, ram_base, ram_size
                ))
            else:
                results.append(apply_memory_patch(patch, memory_patch, image, hooks, ram_base))
    return results


def apply_apploader_memory_patches(
    patches: list[Patch],
    image: MemoryImage,
    hooks: HookRegistry,
    ram_address: int,
    ram_length: int,
    ram_base: int = RAM_BASE,
    strict: bool = False,
) -> list[MemoryPatchResult]:
    """Apply search and hook directives to a freshly loaded range."""
    results: list[MemoryPatchResult] = []
    for patch in patches:
        for memory_patch in patch.memory_patches:
            if memory_patch.ocarina:
                results.append(apply_ocarina_memory_patch(
                    patch, memory_patch, image, hooks, ram_address, ram_length,
                    ram_base=ram_base, strict=strict,
                ))
            elif memory_patch.search:
                results.append(apply_search_memory_patch(
                    patch, memory_patch, image, hooks, ram_address, ram_length
                ))
    return results
