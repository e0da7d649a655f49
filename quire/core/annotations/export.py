"""
Markdown export of reading notes, with YAML front matter for note-taking
tools.
"""
import logging
import os
from datetime import datetime
from typing import Iterable, Optional

from .models import Annotation

logger = logging.getLogger(__name__)

EXPORT_TAGS = "[quire, reading-notes]"


def notes_file_name(title: str) -> str:
    """File name for a book's notes, e.g. ``notes_moby_dick.md``."""
    slug = title.lower().replace(" ", "_").replace(os.sep, "_")
    return f"notes_{slug}.md"


def render_markdown(
    annotations: Iterable[Annotation],
    title: str,
    author: str,
    source: str,
    exported: Optional[datetime] = None,
) -> str:
    """
    Render annotations as a Markdown document.

    Each annotation becomes a quote block under a chapter heading,
    followed by its note when it has one.
    """
    exported = exported or datetime.now()
    parts = [
        "---\n",
        f'title: "{title}"\n',
        f'author: "{author}"\n',
        f'source: "{source}"\n',
        f"exported: {exported.strftime('%Y-%m-%d %H:%M:%S')}\n",
        f"tags: {EXPORT_TAGS}\n",
        "---\n\n",
        f"# Reading Notes: {title}\n\n",
    ]

    for annotation in annotations:
        parts.append(f"### Chapter {annotation.unit_index + 1}\n")
        quoted = annotation.content.replace("\n", "\n> ")
        parts.append(f"> {quoted}\n")
        if annotation.note:
            parts.append(f"\n**Note:** {annotation.note}\n")
        parts.append("\n---\n\n")

    return "".join(parts)


def export_markdown(
    annotations: Iterable[Annotation],
    title: str,
    author: str,
    source: str,
    output_dir: str = ".",
) -> str:
    """
    Write a book's notes to ``notes_<title>.md``.

    Returns:
        Path of the written file

    Raises:
        OSError: If the file cannot be written
    """
    file_path = os.path.join(output_dir, notes_file_name(title))
    with open(file_path, "w", encoding="utf-8") as f:
        f.write(render_markdown(annotations, title, author, source))
    logger.info("Exported notes to %s", file_path)
    return file_path
