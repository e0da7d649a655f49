"""
Annotation system: models, per-book storage, buffer overlay and export.
"""

from .export import export_markdown, notes_file_name, render_markdown
from .models import (
    Annotation,
    AnnotationFilter,
    AnnotationKind,
    JumpTarget,
    ReadingProgress,
)
from .overlay import AnnotationOverlay
from .persistence import AnnotationStore

__all__ = [
    "Annotation",
    "AnnotationFilter",
    "AnnotationKind",
    "AnnotationOverlay",
    "AnnotationStore",
    "JumpTarget",
    "ReadingProgress",
    "export_markdown",
    "notes_file_name",
    "render_markdown",
]
