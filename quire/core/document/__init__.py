"""
Document opening and per-unit content extraction.
"""

from .document import Document, downscale_cover, load_cover_image, open_document
from .epub_reader import EpubDocumentReader
from .models import ContentItem, DocumentKind, ImageRef, TextBlock, TocEntry
from .pdf_reader import PdfDocumentReader

__all__ = [
    "Document",
    "DocumentKind",
    "open_document",
    "load_cover_image",
    "downscale_cover",
    "EpubDocumentReader",
    "PdfDocumentReader",
    "ContentItem",
    "TextBlock",
    "ImageRef",
    "TocEntry",
]
