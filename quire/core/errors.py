"""
Exception types raised by the reading core.
"""


class QuireError(Exception):
    """Base class for all errors raised by the reading core."""


class DocumentOpenError(QuireError):
    """A document could not be opened (corrupt, unreadable or unsupported)."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot open '{path}': {reason}")
        self.path = path
        self.reason = reason
