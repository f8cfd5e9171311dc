"""Exceptions for memory patching."""


class MemoryPatchError(Exception):
    """Base exception for memory patch operations."""


class ReturnInstructionNotFoundError(MemoryPatchError):
    """Raised in strict mode when a hook pattern has no return instruction after it."""
