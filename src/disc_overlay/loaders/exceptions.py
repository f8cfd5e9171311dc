"""Exceptions for external data loading."""


class LoaderError(Exception):
    """Base exception for external data loader operations."""


class PathEscapeError(LoaderError):
    """Raised when an external path would resolve outside its sandbox root."""


class ResourceUnavailableError(LoaderError):
    """Raised when an external file or folder does not exist."""
