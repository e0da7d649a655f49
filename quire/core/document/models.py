from dataclasses import dataclass
from enum import Enum
from typing import Union

from PIL import Image

# ==============================================================================
# Types
# ==============================================================================


class DocumentKind(Enum):
    """Supported document formats."""

    EPUB = "epub"
    PDF = "pdf"

    @classmethod
    def from_path(cls, path: str) -> "DocumentKind":
        """Pick the document kind from a file extension."""
        lower = path.lower()
        if lower.endswith(".epub"):
            return cls.EPUB
        if lower.endswith(".pdf"):
            return cls.PDF
        raise ValueError(f"Unsupported document type: {path}")


# ==============================================================================
# Content Items
# ==============================================================================


@dataclass(frozen=True)
class TextBlock:
    """Reflowed plain text, possibly spanning several lines."""

    text: str


@dataclass(frozen=True)
class ImageRef:
    """A decoded image embedded in a unit."""

    image: Image.Image

    @property
    def size(self):
        return self.image.size


ContentItem = Union[TextBlock, ImageRef]


# ==============================================================================
# Document Structure
# ==============================================================================


@dataclass(frozen=True)
class TocEntry:
    """A table of contents entry pointing at a unit."""

    title: str
    unit_index: int
    level: int = 1


# Placeholder texts shown in place of content that could not be produced
NO_CONTENT = " [ No content in this chapter ] "
UNIT_OUT_OF_RANGE = " [ Unit {index} does not exist ] "
IMAGE_NOT_FOUND = " [ Image not found: {ref} ] "
IMAGE_UNDECODABLE = " [ Image could not be decoded: {ref} ] "
BLANK_PAGE = " [ Blank Page or Text Not Extractable ] "
