"""Exceptions for segment and range-index operations."""


class ContentError(Exception):
    """Base exception for content operations."""


class OutOfRangeError(ContentError):
    """Raised when a read touches bytes no segment covers."""


class OverlappingSegmentError(ContentError):
    """Raised when segments handed to a range index overlap."""


class ContentReadError(ContentError):
    """Raised when a content source cannot produce the requested bytes."""
