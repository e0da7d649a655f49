"""
Flattening of unit content into a line-addressable render buffer.
"""
import math
from typing import Iterable, List, Tuple

from PIL import Image

from ..document.models import ContentItem, ImageRef, TextBlock
from .models import EMPTY_PLACEHOLDER, ImageRow, RenderLine, SizingPolicy, TextLine


def image_height_lines(width: int, height: int, policy: SizingPolicy) -> int:
    """
    Number of rows an image of the given pixel size occupies.

    Args:
        width: Image width in pixels
        height: Image height in pixels
        policy: Sizing policy

    Returns:
        Row count clamped to the policy bounds
    """
    if width <= 0 or height <= 0:
        return policy.min_rows

    rows = policy.assumed_width_chars * (height / width) * policy.cell_aspect_ratio
    # Round half up, round() would round 12.5 down to 12
    rows = math.floor(rows + 0.5)
    return max(policy.min_rows, min(policy.max_rows, rows))


def flatten(
    items: Iterable[ContentItem], policy: SizingPolicy = SizingPolicy()
) -> Tuple[List[RenderLine], List[Image.Image]]:
    """
    Turn content items into render lines and an image table.

    Every newline-delimited segment of a text block becomes one line,
    empty segments included. Each image becomes a run of rows sharing
    one index into the returned image table.

    Args:
        items: Content items of one unit
        policy: Image sizing policy

    Returns:
        Tuple of (render lines, images); lines are never empty
    """
    lines: List[RenderLine] = []
    images: List[Image.Image] = []

    for item in items:
        if isinstance(item, TextBlock):
            lines.extend(TextLine(segment) for segment in _split_lines(item.text))
        elif isinstance(item, ImageRef):
            width, height = item.image.size
            rows = image_height_lines(width, height, policy)
            image_index = len(images)
            images.append(item.image)
            lines.extend(ImageRow(image_index, row) for row in range(rows))

    if not lines:
        lines.append(TextLine(EMPTY_PLACEHOLDER))
    return lines, images


def _split_lines(text: str) -> List[str]:
    # A trailing newline ends the last line rather than opening a new one
    segments = text.split("\n")
    if len(segments) > 1 and segments[-1] == "":
        segments.pop()
    return [segment.rstrip("\r") for segment in segments]
