"""
EPUB document reading: spine units, metadata, navigation and images.
"""
import io
import logging
import posixpath
from typing import Dict, List, Optional, Tuple
from urllib.parse import unquote

import ebooklib
from ebooklib import epub
from PIL import Image

from ..errors import DocumentOpenError
from .markup import DEFAULT_TEXT_WIDTH, find_image_refs, html_to_text
from .models import (
    IMAGE_NOT_FOUND,
    IMAGE_UNDECODABLE,
    NO_CONTENT,
    UNIT_OUT_OF_RANGE,
    ContentItem,
    ImageRef,
    TextBlock,
    TocEntry,
)

logger = logging.getLogger(__name__)

_COVER_HINTS = ("cover", "front")


class EpubDocumentReader:
    """Handles EPUB loading and per-chapter content extraction."""

    def __init__(self, file_path: str, text_width: int = DEFAULT_TEXT_WIDTH):
        self.file_path = file_path
        self.text_width = text_width

        try:
            self.book = epub.read_epub(file_path)
        except Exception as e:
            raise DocumentOpenError(file_path, f"invalid EPUB ({e})") from e

        # Spine idrefs in reading order
        self.spine: List[str] = [
            entry[0] if isinstance(entry, tuple) else entry
            for entry in self.book.spine
        ]
        self._spine_positions: Dict[str, int] = {}
        for index, idref in enumerate(self.spine):
            item = self.book.get_item_with_id(idref)
            if item is not None:
                self._spine_positions.setdefault(item.get_name(), index)

    # ------------------------------------------------------------------
    # Document info
    # ------------------------------------------------------------------

    def get_metadata(self) -> Tuple[str, str]:
        """
        Get the book title and author.

        Returns:
            Tuple of (title, author)
        """
        title = self._first_metadata("title") or "Unknown Title"
        author = self._first_metadata("creator") or "Unknown Author"
        return title, author

    def _metadata(self, namespace: str, name: str) -> list:
        # ebooklib raises KeyError when a namespace is absent altogether
        try:
            return self.book.get_metadata(namespace, name)
        except KeyError:
            return []

    def _first_metadata(self, name: str) -> Optional[str]:
        for value, _attrs in self._metadata("DC", name):
            if value and value.strip():
                return value.strip()
        return None

    def get_unit_count(self) -> int:
        """Get the number of chapters in reading order."""
        return len(self.spine)

    def get_toc(self) -> List[TocEntry]:
        """
        Get the navigation entries mapped to spine positions.

        Falls back to one "Chapter N" entry per spine item when the
        book carries no usable navigation.
        """
        entries: List[TocEntry] = []
        self._walk_toc(self.book.toc, 1, entries)
        if entries:
            return entries
        return [TocEntry(f"Chapter {i + 1}", i) for i in range(len(self.spine))]

    def _walk_toc(self, nodes, level: int, entries: List[TocEntry]) -> None:
        for node in nodes:
            # Nested sections come as (Section, [children])
            if isinstance(node, tuple) and len(node) == 2:
                section, children = node
                self._add_toc_entry(section, level, entries)
                self._walk_toc(children, level + 1, entries)
            elif isinstance(node, (list, tuple)):
                self._walk_toc(node, level, entries)
            else:
                self._add_toc_entry(node, level, entries)

    def _add_toc_entry(self, node, level: int, entries: List[TocEntry]) -> None:
        title = (getattr(node, "title", None) or "").strip()
        href = getattr(node, "href", None) or ""
        unit_index = self._unit_for_href(href)
        if unit_index is None:
            return
        entries.append(TocEntry(title or f"Chapter {unit_index + 1}", unit_index, level))

    def _unit_for_href(self, href: str) -> Optional[int]:
        path = unquote(href.split("#", 1)[0])
        if not path:
            return None
        if path in self._spine_positions:
            return self._spine_positions[path]
        # Navigation hrefs may be relative to the package directory
        for name, index in self._spine_positions.items():
            if name.endswith("/" + path) or path.endswith("/" + name):
                return index
        return None

    # ------------------------------------------------------------------
    # Unit content
    # ------------------------------------------------------------------

    def get_unit_content(self, index: int) -> List[ContentItem]:
        """
        Extract one chapter as an ordered list of text and image items.

        Missing or undecodable images become placeholder text; the
        chapter is never aborted.

        Args:
            index: 0-based spine position

        Returns:
            Ordered content items, never empty
        """
        if not 0 <= index < len(self.spine):
            return [TextBlock(UNIT_OUT_OF_RANGE.format(index=index))]

        item = self.book.get_item_with_id(self.spine[index])
        raw = item.get_content() if item is not None else b""
        if not raw:
            return [TextBlock(NO_CONTENT)]

        markup = raw.decode("utf-8", errors="replace")
        base_dir = posixpath.dirname(item.get_name())

        items: List[ContentItem] = []
        cursor = 0
        for start, end, ref in find_image_refs(markup):
            self._append_text(items, markup[cursor:start])
            items.append(self._load_image_item(ref, base_dir))
            cursor = end
        self._append_text(items, markup[cursor:])

        if not items:
            return [TextBlock(NO_CONTENT)]
        return items

    def _append_text(self, items: List[ContentItem], markup: str) -> None:
        if not markup:
            return
        text = html_to_text(markup, self.text_width)
        if text.strip():
            items.append(TextBlock(text))

    def _load_image_item(self, ref: str, base_dir: str) -> ContentItem:
        resource = self.resolve_image(ref, base_dir)
        if resource is None:
            logger.warning("Image not found in %s: %s", self.file_path, ref)
            return TextBlock(IMAGE_NOT_FOUND.format(ref=ref))

        try:
            image = decode_image(resource.get_content())
        except Exception as e:
            logger.warning("Image could not be decoded (%s): %s", ref, e)
            return TextBlock(IMAGE_UNDECODABLE.format(ref=ref))
        return ImageRef(image)

    def resolve_image(self, ref: str, base_dir: str = ""):
        """
        Find the manifest item an image reference points at.

        Tries, in order: the reference as a manifest id, as an archive
        path (relative to the chapter, then as written, with any
        fragment or query removed), and finally by trailing file name
        against every manifest path.

        Returns:
            The ebooklib item, or None
        """
        item = self.book.get_item_with_id(ref)
        if item is not None:
            return item

        path = unquote(ref.split("#", 1)[0].split("?", 1)[0])
        candidates = []
        if base_dir:
            candidates.append(posixpath.normpath(posixpath.join(base_dir, path)))
        candidates.append(posixpath.normpath(path))
        candidates.append(path)
        for candidate in candidates:
            item = self.book.get_item_with_href(candidate)
            if item is not None:
                return item

        filename = posixpath.basename(path)
        if not filename:
            return None
        for item in self.book.get_items():
            name = item.get_name()
            if name == filename or name.endswith("/" + filename):
                return item
        return None

    # ------------------------------------------------------------------
    # Cover
    # ------------------------------------------------------------------

    def get_cover_image(self) -> Optional[Image.Image]:
        """
        Best-effort cover lookup.

        Prefers an explicitly tagged cover; otherwise picks the largest
        image whose path mentions "cover" or "front".
        """
        for item in self._tagged_cover_items():
            try:
                return decode_image(item.get_content())
            except Exception as e:
                logger.warning("Tagged cover %s is not decodable: %s", item.get_name(), e)

        best: Optional[Image.Image] = None
        best_area = 0
        for item in self.book.get_items():
            if item.get_type() not in (ebooklib.ITEM_IMAGE, ebooklib.ITEM_COVER):
                continue
            name = item.get_name().lower()
            if not any(hint in name for hint in _COVER_HINTS):
                continue
            try:
                image = decode_image(item.get_content())
            except Exception:
                continue
            area = image.width * image.height
            if area > best_area:
                best, best_area = image, area
        return best

    def _tagged_cover_items(self):
        items = list(self.book.get_items_of_type(ebooklib.ITEM_COVER))
        for _value, attrs in self._metadata("OPF", "cover"):
            cover_id = (attrs or {}).get("content")
            item = self.book.get_item_with_id(cover_id) if cover_id else None
            if item is not None and item not in items:
                items.append(item)
        return items

    def close(self) -> None:
        """Nothing to release; the archive is read eagerly."""


def decode_image(data: bytes) -> Image.Image:
    """Decode image bytes into a fully loaded Pillow image."""
    image = Image.open(io.BytesIO(data))
    image.load()
    return image
