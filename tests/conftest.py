import io

import fitz
import pytest
from ebooklib import epub
from PIL import Image
from PyQt5.QtCore import QCoreApplication

from quire.config import ReaderConfig
from quire.core.layout import TextLine


@pytest.fixture(scope="session", autouse=True)
def qt_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


def png_bytes(width, height, color=(180, 40, 40)):
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, "PNG")
    return buf.getvalue()


def text_lines(*texts):
    return [TextLine(t) for t in texts]


def _chapter(uid, file_name, title, body):
    chapter = epub.EpubHtml(uid=uid, title=title, file_name=file_name, lang="en")
    chapter.content = f"<html><head><title>{title}</title></head><body>{body}</body></html>"
    return chapter


@pytest.fixture
def epub_path(tmp_path):
    """
    Four chapters: text around an image, a missing image, plain words,
    and an image that cannot be decoded.
    """
    book = epub.EpubBook()
    book.set_identifier("quire-test-book")
    book.set_title("Test Book")
    book.set_language("en")
    book.add_author("Ada Writer")

    c1 = _chapter(
        "c1", "chap1.xhtml", "Opening",
        '<h1>Opening</h1><p>The first paragraph of the book.</p>'
        '<p><img src="images/wide.png" alt="wide"/></p>'
        '<p>Text after the picture.</p>',
    )
    c2 = _chapter(
        "c2", "chap2.xhtml", "Missing Image",
        '<p>Before the gap.</p><p><img src="images/nowhere.png" alt=""/></p><p>After the gap.</p>',
    )
    c3 = _chapter(
        "c3", "chap3.xhtml", "Words",
        "<p>Alpha beta gamma delta.</p><p>Second line here.</p>",
    )
    c4 = _chapter(
        "c4", "chap4.xhtml", "Broken",
        '<p>Broken picture ahead.</p><p><img src="images/broken.png" alt=""/></p>',
    )
    for chapter in (c1, c2, c3, c4):
        book.add_item(chapter)

    book.add_item(epub.EpubItem(uid="wide", file_name="images/wide.png",
                                media_type="image/png", content=png_bytes(200, 100)))
    book.add_item(epub.EpubItem(uid="front-art", file_name="images/front_cover.png",
                                media_type="image/png", content=png_bytes(300, 450)))
    book.add_item(epub.EpubItem(uid="broken", file_name="images/broken.png",
                                media_type="image/png", content=b"this is not a png"))

    book.toc = (
        epub.Link("chap1.xhtml", "Opening", "opening"),
        epub.Link("chap2.xhtml", "Missing Image", "missing"),
        epub.Link("chap3.xhtml", "Words", "words"),
    )
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = [c1, c2, c3, c4]

    path = tmp_path / "test_book.epub"
    epub.write_epub(str(path), book)
    return str(path)


@pytest.fixture
def pdf_path(tmp_path):
    """A text page followed by a blank page, with an outline."""
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Hello from page one", fontsize=12)
    page.insert_text((72, 96), "A second line of text", fontsize=12)
    doc.new_page()
    doc.set_toc([[1, "Introduction", 1], [1, "Blank", 2]])
    doc.set_metadata({"title": "Sample PDF", "author": "Pdf Author"})

    path = tmp_path / "sample.pdf"
    doc.save(str(path))
    doc.close()
    return str(path)


@pytest.fixture
def plain_pdf_path(tmp_path):
    """Two text pages, no outline and no metadata."""
    doc = fitz.open()
    for number in (1, 2):
        page = doc.new_page()
        page.insert_text((72, 72), f"Plain page {number}", fontsize=12)
    path = tmp_path / "plain.pdf"
    doc.save(str(path))
    doc.close()
    return str(path)


@pytest.fixture
def config(tmp_path):
    return ReaderConfig(data_dir=str(tmp_path / "data"))


@pytest.fixture
def long_paragraph_epub(tmp_path):
    """One chapter holding a paragraph that wraps many times before 'needle'."""
    book = epub.EpubBook()
    book.set_identifier("quire-long-paragraph")
    book.set_title("Long Paragraph")
    book.set_language("en")
    book.add_author("Ada Writer")

    words = " ".join(["filler"] * 60)
    chapter = _chapter("c1", "chap1.xhtml", "Long", f"<p>{words} needle at the end.</p>")
    book.add_item(chapter)
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = [chapter]

    path = tmp_path / "long_paragraph.epub"
    epub.write_epub(str(path), book)
    return str(path)
