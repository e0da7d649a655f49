"""
Markup scanning and plain-text reflow for EPUB chapters.
"""
import re
import textwrap
from typing import Iterator, List, Tuple

from bs4 import BeautifulSoup, Comment

DEFAULT_TEXT_WIDTH = 120

# <img src="..">, <image xlink:href="..">, <image href="..">
IMAGE_REF_PATTERN = re.compile(
    r"""<(?:img|image)\b[^>]*?\s(?:src|xlink:href|href)\s*=\s*["']([^"']+)["'][^>]*>""",
    re.IGNORECASE | re.DOTALL,
)

_DROPPED_TAGS = ["head", "title", "script", "style"]

_BLOCK_TAGS = [
    "p", "div", "section", "article", "aside", "header", "footer",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "li", "ul", "ol", "dl", "dt", "dd",
    "blockquote", "pre", "table", "tr", "figure", "figcaption", "hr",
]

_PARAGRAPH_BREAK = "\n\n"


def find_image_refs(markup: str) -> Iterator[Tuple[int, int, str]]:
    """
    Yield every inline image reference in a chunk of markup.

    Yields:
        Tuples of (match start, match end, referenced path)
    """
    for match in IMAGE_REF_PATTERN.finditer(markup):
        ref = match.group(1).strip()
        if ref:
            yield match.start(), match.end(), ref


def html_to_text(markup: str, width: int = DEFAULT_TEXT_WIDTH) -> str:
    """
    Convert an HTML fragment to plain text wrapped at a fixed width.

    The fragment may be a partial slice of a document with unbalanced
    tags. Paragraphs are separated by a single blank line.

    Args:
        markup: HTML or XHTML source
        width: Column width to wrap at

    Returns:
        Reflowed text, without leading or trailing blank lines
    """
    soup = BeautifulSoup(markup, "html.parser")

    for tag in soup(_DROPPED_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    for br in soup.find_all("br"):
        br.replace_with("\n")
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.insert_before(_PARAGRAPH_BREAK)
        tag.insert_after(_PARAGRAPH_BREAK)

    raw = soup.get_text()
    return reflow_paragraphs(raw, width)


def reflow_paragraphs(raw: str, width: int = DEFAULT_TEXT_WIDTH) -> str:
    """Collapse whitespace inside paragraphs and wrap each to `width`."""
    paragraphs: List[str] = []
    for chunk in re.split(r"\n\s*\n", raw):
        # Single newlines inside a chunk come from <br>, keep them as lines
        lines = []
        for line in chunk.split("\n"):
            collapsed = " ".join(line.split())
            if collapsed:
                lines.extend(
                    textwrap.wrap(
                        collapsed,
                        width,
                        break_long_words=False,
                        break_on_hyphens=True,
                    )
                    or [collapsed]
                )
        if lines:
            paragraphs.append("\n".join(lines))
    return "\n\n".join(paragraphs)


def wrap_long_lines(text: str, width: int = DEFAULT_TEXT_WIDTH) -> str:
    """
    Wrap only the lines wider than `width`, keeping the layout of the rest.

    Used for page text that already carries a column layout.
    """
    out: List[str] = []
    for line in text.split("\n"):
        if len(line) <= width:
            out.append(line)
            continue
        indent = line[: len(line) - len(line.lstrip())]
        out.extend(
            textwrap.wrap(
                line,
                width,
                subsequent_indent=indent if len(indent) < width // 2 else "",
                break_long_words=True,
            )
        )
    return "\n".join(out)
