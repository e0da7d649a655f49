"""
PDF document reading: per-page text extraction with a raster fallback.
"""
import logging
import os
import re
import shutil
import subprocess
import tempfile
from typing import List, Optional, Tuple

import fitz  # PyMuPDF
from PIL import Image

from ..errors import DocumentOpenError
from .markup import DEFAULT_TEXT_WIDTH, wrap_long_lines
from .models import BLANK_PAGE, UNIT_OUT_OF_RANGE, ContentItem, ImageRef, TextBlock, TocEntry

logger = logging.getLogger(__name__)

DEFAULT_RASTER_DPI = 150
COVER_PREVIEW_DPI = 72
POPPLER_TIMEOUT = 30  # seconds


class PdfDocumentReader:
    """Handles PDF loading, page text extraction and page rasterizing."""

    def __init__(
        self,
        file_path: str,
        text_width: int = DEFAULT_TEXT_WIDTH,
        raster_dpi: int = DEFAULT_RASTER_DPI,
        use_poppler: Optional[bool] = None,
    ):
        """
        Open a PDF document.

        Args:
            file_path: Path to the PDF file
            text_width: Column width that extracted lines are wrapped to
            raster_dpi: Resolution used when a page has no text layer
            use_poppler: Use pdftotext/pdftoppm; None means "when installed"
        """
        self.file_path = file_path
        self.text_width = text_width
        self.raster_dpi = raster_dpi

        if use_poppler is None:
            use_poppler = bool(shutil.which("pdftotext") and shutil.which("pdftoppm"))
        self.use_poppler = use_poppler

        try:
            self.doc: Optional[fitz.Document] = fitz.open(file_path, filetype="pdf")
        except Exception as e:
            raise DocumentOpenError(file_path, f"invalid PDF ({e})") from e

        if self.doc.needs_pass:
            self.doc.close()
            raise DocumentOpenError(file_path, "document is encrypted")

        self.total_pages: int = self.doc.page_count
        if self.total_pages == 0:
            self.doc.close()
            raise DocumentOpenError(file_path, "document has no pages")

    def close(self) -> None:
        """Close the underlying document."""
        if self.doc:
            self.doc.close()
            self.doc = None

    # ------------------------------------------------------------------
    # Document info
    # ------------------------------------------------------------------

    def get_metadata(self) -> Tuple[str, str]:
        """
        Get the document title and author.

        The file name stands in for a missing title.
        """
        metadata = (self.doc.metadata if self.doc else None) or {}
        title = (metadata.get("title") or "").strip()
        author = (metadata.get("author") or "").strip()
        if not title:
            title = os.path.basename(self.file_path) or "Unknown PDF"
        return title, author or "PDF Document"

    def get_unit_count(self) -> int:
        """Get the total number of pages."""
        return self.total_pages

    def get_toc(self) -> List[TocEntry]:
        """
        Get the outline as TOC entries, or one entry per page.

        Returns:
            List of TocEntry pointing at 0-based page indices
        """
        entries = self._process_toc()
        if entries:
            return entries
        return [TocEntry(f"Page {i + 1}", i) for i in range(self.total_pages)]

    def _process_toc(self) -> List[TocEntry]:
        if not self.doc:
            return []

        try:
            raw_toc = self.doc.get_toc(simple=True)
        except Exception as e:
            logger.warning("Failed to read outline of %s: %s", self.file_path, e)
            return []

        entries = []
        for entry in raw_toc:
            if len(entry) < 3:
                continue
            level, title, page_num = entry[:3]
            # Outline entries without a target page carry -1 or 0
            if not 1 <= page_num <= self.total_pages:
                continue
            entries.append(
                TocEntry(self._clean_toc_title(title, page_num), page_num - 1, level)
            )
        return entries

    def _clean_toc_title(self, title: str, page_num: int) -> str:
        """
        Clean a TOC title string.

        Args:
            title: Raw title from TOC
            page_num: Page number for fallback

        Returns:
            Cleaned title string
        """
        if not title:
            return f"Section {page_num}"

        # Surrogate escapes from PyMuPDF carry formatting characters
        cleaned_title = re.sub(r"[\udc00-\udfff]+", "", title)
        cleaned_title = re.sub(r"[\ud800-\udbff]+", "", cleaned_title)

        cleaned_title = cleaned_title.replace("\r", "")
        cleaned_title = cleaned_title.replace("\n", " ")
        cleaned_title = cleaned_title.replace("\t", " ")
        cleaned_title = re.sub(r"[\x00-\x1f\x7f-\x9f]", "", cleaned_title)
        cleaned_title = re.sub(r"\s+", " ", cleaned_title).strip()

        return cleaned_title or f"Section {page_num}"

    # ------------------------------------------------------------------
    # Unit content
    # ------------------------------------------------------------------

    def get_unit_content(self, page_index: int) -> List[ContentItem]:
        """
        Extract one page as content items.

        Pages without a text layer are rasterized; if that fails too a
        placeholder is returned.

        Args:
            page_index: 0-based index of the page

        Returns:
            A single-item list (text, image or placeholder)
        """
        if not self.doc or not 0 <= page_index < self.total_pages:
            return [TextBlock(UNIT_OUT_OF_RANGE.format(index=page_index))]

        try:
            text = self.extract_text(page_index)
        except Exception as e:
            logger.warning("Text extraction failed on page %d: %s", page_index + 1, e)
            text = ""

        if text.strip():
            return [TextBlock(wrap_long_lines(text, self.text_width))]

        try:
            return [ImageRef(self.rasterize_page(page_index, self.raster_dpi))]
        except Exception as e:
            logger.warning("Rasterizing page %d failed: %s", page_index + 1, e)
            return [TextBlock(BLANK_PAGE)]

    def extract_text(self, page_index: int) -> str:
        """
        Extract layout-preserving plain text from a page.

        Args:
            page_index: 0-based index of the page

        Returns:
            Page text with form feeds and trailing whitespace removed
        """
        if self.use_poppler:
            page_num = str(page_index + 1)
            result = subprocess.run(
                ["pdftotext", "-f", page_num, "-l", page_num, "-layout", self.file_path, "-"],
                capture_output=True,
                timeout=POPPLER_TIMEOUT,
            )
            if result.returncode != 0:
                stderr = result.stderr.decode("utf-8", errors="replace").strip()
                raise RuntimeError(f"pdftotext failed: {stderr}")
            text = result.stdout.decode("utf-8", errors="replace")
        else:
            page = self.doc.load_page(page_index)
            text = page.get_text("text", sort=True)

        text = text.replace("\f", "")
        return "\n".join(line.rstrip() for line in text.split("\n")).strip("\n")

    def rasterize_page(self, page_index: int, dpi: int) -> Image.Image:
        """
        Render a page into a temporary PNG and decode it.

        The temporary file is always removed.

        Args:
            page_index: 0-based index of the page
            dpi: Render resolution

        Returns:
            The decoded page image
        """
        temp_fd, temp_path = tempfile.mkstemp(prefix=f"quire_page_{page_index + 1}_", suffix=".png")
        os.close(temp_fd)
        try:
            if self.use_poppler:
                self._rasterize_with_poppler(page_index, dpi, temp_path)
            else:
                page = self.doc.load_page(page_index)
                page.get_pixmap(dpi=dpi, alpha=False).save(temp_path)

            with Image.open(temp_path) as img:
                img.load()
                return img.copy()
        finally:
            if os.path.exists(temp_path):
                os.remove(temp_path)

    def _rasterize_with_poppler(self, page_index: int, dpi: int, temp_path: str) -> None:
        page_num = str(page_index + 1)
        # pdftoppm appends the extension itself
        root = temp_path[: -len(".png")]
        result = subprocess.run(
            [
                "pdftoppm", "-f", page_num, "-l", page_num,
                "-png", "-singlefile", "-r", str(dpi),
                self.file_path, root,
            ],
            capture_output=True,
            timeout=POPPLER_TIMEOUT,
        )
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise RuntimeError(f"pdftoppm failed: {stderr}")

    # ------------------------------------------------------------------
    # Cover
    # ------------------------------------------------------------------

    def get_cover_image(self) -> Optional[Image.Image]:
        """Use the first page as the cover."""
        if not self.doc or self.total_pages == 0:
            return None
        page = self.doc.load_page(0)
        pix = page.get_pixmap(dpi=COVER_PREVIEW_DPI, alpha=False)
        return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
