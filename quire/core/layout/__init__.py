"""
Render buffer layout.
"""

from .flattener import flatten, image_height_lines
from .models import ImageRow, RenderLine, SizingPolicy, TextLine, split_words

__all__ = [
    "flatten",
    "image_height_lines",
    "SizingPolicy",
    "RenderLine",
    "TextLine",
    "ImageRow",
    "split_words",
]
