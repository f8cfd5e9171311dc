"""Exceptions for tree lookups."""


class TreeError(Exception):
    """Base exception for tree operations."""


class TypeMismatchError(TreeError):
    """Raised when a path treats a file as a folder or a folder as a file."""


class NodeNotFoundError(TreeError):
    """Raised when a path does not exist and may not be created."""
