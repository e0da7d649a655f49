"""
Command line entry point.

Prints a book's metadata, table of contents or one unit's render buffer,
and can export a cover preview, search results or reading notes.
"""
import argparse
import logging
import sys

from quire.config import load_config
from quire.core.annotations import AnnotationStore, export_markdown
from quire.core.document import load_cover_image, open_document
from quire.core.errors import DocumentOpenError
from quire.core.layout import ImageRow, flatten
from quire.core.search import search_document


def print_unit(document, unit_index: int) -> None:
    lines, images = flatten(document.unit_content(unit_index))
    for line in lines:
        if isinstance(line, ImageRow):
            print(f"[image {line.image_index}:{line.row_index}]")
        else:
            print(line.text)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Inspect EPUB and PDF books the way the reader sees them.")
    parser.add_argument("book", help="Path to an EPUB or PDF file")
    parser.add_argument("--unit", "-u", type=int, default=None, help="Print the render buffer of this 0-based unit")
    parser.add_argument("--toc", action="store_true", help="Print the table of contents")
    parser.add_argument("--cover", type=str, default=None, help="Save the cover preview to this PNG path")
    parser.add_argument("--search", "-s", type=str, default=None, help="Print lines containing this term")
    parser.add_argument("--export-notes", type=str, default=None, metavar="DIR", help="Export annotations as Markdown into DIR")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config()
    try:
        document = open_document(args.book, config.text_width, config.raster_dpi)
    except DocumentOpenError as e:
        print(e, file=sys.stderr)
        return 1

    with document:
        title, author = document.metadata()
        print(f"{title} by {author} ({document.unit_count()} units)")

        if args.toc:
            for entry in document.toc_entries():
                indent = "  " * max(entry.level - 1, 0)
                print(f"{indent}{entry.title} -> {entry.unit_index}")

        if args.search:
            for result in search_document(document, args.search):
                print(f"[{result.unit_index}:{result.line_index}] {result.text}")

        if args.unit is not None:
            if not 0 <= args.unit < document.unit_count():
                print(f"Unit {args.unit} does not exist", file=sys.stderr)
                return 2
            print_unit(document, args.unit)

    if args.cover:
        cover = load_cover_image(args.book)
        if cover is None:
            print("No cover found", file=sys.stderr)
        else:
            if cover.mode not in ("RGB", "RGBA", "L", "P"):
                cover = cover.convert("RGB")
            cover.save(args.cover, "PNG")
            print(f"Cover saved to {args.cover}")

    if args.export_notes:
        store = AnnotationStore(str(config.resolve_data_dir()), args.book)
        path = export_markdown(store.all_annotations(), title, author, args.book, args.export_notes)
        print(f"Notes exported to {path}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
