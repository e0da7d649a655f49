"""
Reading core: extraction, layout, navigation, annotations and the
session that drives them.
"""

from .errors import DocumentOpenError, QuireError

__all__ = ["QuireError", "DocumentOpenError"]
