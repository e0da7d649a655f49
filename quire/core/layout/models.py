from dataclasses import dataclass
from typing import List, Union


def split_words(text: str) -> List[str]:
    """Split a line into words on any run of whitespace."""
    return text.split()


# ==============================================================================
# Render Lines
# ==============================================================================


@dataclass(frozen=True)
class TextLine:
    """One line of reflowed text."""

    text: str

    @property
    def words(self) -> List[str]:
        return split_words(self.text)

    @property
    def word_count(self) -> int:
        return len(self.words)


@dataclass(frozen=True)
class ImageRow:
    """One terminal row of an image; rows of one image share `image_index`."""

    image_index: int
    row_index: int

    @property
    def word_count(self) -> int:
        return 0


RenderLine = Union[TextLine, ImageRow]


# ==============================================================================
# Sizing
# ==============================================================================


@dataclass(frozen=True)
class SizingPolicy:
    """How many terminal rows an image is given."""

    assumed_width_chars: int = 80
    cell_aspect_ratio: float = 0.5  # Cells are about twice as tall as wide
    min_rows: int = 5
    max_rows: int = 30


EMPTY_PLACEHOLDER = " [ Empty ] "
