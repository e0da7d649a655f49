"""
Format-independent document handle.

A document is a closed variant over DocumentKind; every capability is
routed through one dispatch table rather than a class hierarchy.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from PIL import Image

from ..errors import DocumentOpenError
from .epub_reader import EpubDocumentReader
from .markup import DEFAULT_TEXT_WIDTH
from .models import ContentItem, DocumentKind, TocEntry
from .pdf_reader import DEFAULT_RASTER_DPI, PdfDocumentReader

logger = logging.getLogger(__name__)

MAX_COVER_DIM = 640


@dataclass(frozen=True)
class _Capabilities:
    open: Callable[..., Any]
    metadata: Callable[[Any], Tuple[str, str]]
    unit_count: Callable[[Any], int]
    unit_content: Callable[[Any, int], List[ContentItem]]
    toc: Callable[[Any], List[TocEntry]]
    cover: Callable[[Any], Optional[Image.Image]]
    close: Callable[[Any], None]


_DISPATCH: Dict[DocumentKind, _Capabilities] = {
    DocumentKind.EPUB: _Capabilities(
        open=lambda path, text_width, raster_dpi: EpubDocumentReader(path, text_width),
        metadata=EpubDocumentReader.get_metadata,
        unit_count=EpubDocumentReader.get_unit_count,
        unit_content=EpubDocumentReader.get_unit_content,
        toc=EpubDocumentReader.get_toc,
        cover=EpubDocumentReader.get_cover_image,
        close=EpubDocumentReader.close,
    ),
    DocumentKind.PDF: _Capabilities(
        open=lambda path, text_width, raster_dpi: PdfDocumentReader(path, text_width, raster_dpi),
        metadata=PdfDocumentReader.get_metadata,
        unit_count=PdfDocumentReader.get_unit_count,
        unit_content=PdfDocumentReader.get_unit_content,
        toc=PdfDocumentReader.get_toc,
        cover=PdfDocumentReader.get_cover_image,
        close=PdfDocumentReader.close,
    ),
}


class Document:
    """An open EPUB or PDF document."""

    def __init__(self, path: str, kind: DocumentKind, backend: Any):
        self.path = path
        self.kind = kind
        self.backend = backend
        self._caps = _DISPATCH[kind]

    def metadata(self) -> Tuple[str, str]:
        """Get (title, author)."""
        return self._caps.metadata(self.backend)

    def unit_count(self) -> int:
        """Number of navigable units (chapters or pages)."""
        return self._caps.unit_count(self.backend)

    def unit_content(self, index: int) -> List[ContentItem]:
        """Content items of one unit; degraded content becomes placeholders."""
        return self._caps.unit_content(self.backend, index)

    def toc_entries(self) -> List[TocEntry]:
        """Table of contents entries with their target units."""
        return self._caps.toc(self.backend)

    def toc(self) -> List[str]:
        """Table of contents labels."""
        return [entry.title for entry in self.toc_entries()]

    def cover(self) -> Optional[Image.Image]:
        return self._caps.cover(self.backend)

    def close(self) -> None:
        self._caps.close(self.backend)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self) -> str:
        return f"Document(kind={self.kind.value}, path={self.path!r})"


def open_document(
    path: str,
    text_width: int = DEFAULT_TEXT_WIDTH,
    raster_dpi: int = DEFAULT_RASTER_DPI,
) -> Document:
    """
    Open an EPUB or PDF document.

    Args:
        path: Path to the document
        text_width: Column width for reflowed text
        raster_dpi: Resolution for scanned pages

    Returns:
        The open document

    Raises:
        DocumentOpenError: The file is unsupported, missing or corrupt
    """
    try:
        kind = DocumentKind.from_path(path)
    except ValueError as e:
        logger.error("Refusing to open %s: unsupported type", path)
        raise DocumentOpenError(path, "unsupported document type") from e

    try:
        backend = _DISPATCH[kind].open(path, text_width, raster_dpi)
    except DocumentOpenError as e:
        logger.error("Failed to open %s: %s", path, e.reason)
        raise

    return Document(path, kind, backend)


def load_cover_image(path: str) -> Optional[Image.Image]:
    """
    Load a downscaled cover for a document, best effort.

    Returns:
        The cover image, or None when none could be found
    """
    try:
        with open_document(path) as document:
            cover = document.cover()
    except Exception as e:
        logger.warning("Cover lookup failed for %s: %s", path, e)
        return None

    if cover is None:
        return None
    return downscale_cover(cover)


def downscale_cover(image: Image.Image, max_dim: int = MAX_COVER_DIM) -> Image.Image:
    """Shrink an image so its longest side is at most `max_dim`."""
    width, height = image.size
    longest = max(width, height)
    if longest <= max_dim:
        return image

    scale = max_dim / longest
    new_size = (max(1, round(width * scale)), max(1, round(height * scale)))
    return image.resize(new_size, Image.BILINEAR)
