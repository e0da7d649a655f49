from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import NamedTuple, Optional


class AnnotationKind(Enum):
    HIGHLIGHT = "highlight"
    QUESTION = "question"
    SUMMARY = "summary"

    @property
    def label(self) -> str:
        """Single-letter marker used in list views."""
        return self.value[0].upper()

    @staticmethod
    def from_str(value: Optional[str]) -> "AnnotationKind":
        """Parse a stored kind; anything unknown reads back as a highlight."""
        try:
            return AnnotationKind((value or "").lower())
        except ValueError:
            return AnnotationKind.HIGHLIGHT


class AnnotationFilter(Enum):
    ALL = "All"
    HIGHLIGHTS = "Highlights"
    QUESTIONS = "Questions"
    SUMMARIES = "Summaries"

    def accepts(self, kind: AnnotationKind) -> bool:
        if self is AnnotationFilter.ALL:
            return True
        return _FILTER_KINDS[self] is kind


_FILTER_KINDS = {
    AnnotationFilter.HIGHLIGHTS: AnnotationKind.HIGHLIGHT,
    AnnotationFilter.QUESTIONS: AnnotationKind.QUESTION,
    AnnotationFilter.SUMMARIES: AnnotationKind.SUMMARY,
}


@dataclass
class Annotation:
    """A persisted word range inside one unit."""
    unit_index: int  # 0-based chapter/page index
    start_line: int
    start_word: int
    end_line: int
    end_word: int
    content: str  # Text snapshot at creation time
    note: Optional[str] = None
    kind: AnnotationKind = AnnotationKind.HIGHLIGHT
    id: Optional[int] = None  # Assigned by the store
    created_at: str = field(default_factory=lambda: datetime.now().isoformat(timespec="seconds"))

    def contains(self, line: int, word: int) -> bool:
        """
        Check whether the word at (line, word) falls inside this range.

        Interior lines match entirely, the start line matches from
        start_word on and the end line up to end_word.
        """
        sl, sw, el, ew = self.start_line, self.start_word, self.end_line, self.end_word
        if sl < line < el:
            return True
        if sl == el == line:
            return sw <= word <= ew
        if line == sl and word >= sw:
            return True
        if line == el and word <= ew:
            return True
        return False

    def sort_key(self):
        return (self.unit_index, self.start_line, self.start_word, self.id or 0)

    def to_dict(self):
        """Convert annotation to dictionary for JSON serialization."""
        data = {
            'id': self.id,
            'unit_index': self.unit_index,
            'start_line': self.start_line,
            'start_word': self.start_word,
            'end_line': self.end_line,
            'end_word': self.end_word,
            'content': self.content,
            'kind': self.kind.value,
            'created_at': self.created_at,
        }

        if self.note is not None:
            data['note'] = self.note

        return data

    @staticmethod
    def from_dict(data):
        """Create annotation from dictionary."""
        return Annotation(
            unit_index=data['unit_index'],
            start_line=data['start_line'],
            start_word=data['start_word'],
            end_line=data['end_line'],
            end_word=data['end_word'],
            content=data.get('content', ''),
            note=data.get('note'),
            kind=AnnotationKind.from_str(data.get('kind')),
            id=data.get('id'),
            created_at=data.get('created_at', ''),
        )


class JumpTarget(NamedTuple):
    """Where a located annotation starts."""

    unit_index: int
    line: int
    word: int


@dataclass
class ReadingProgress:
    unit_index: int = 0
    line: int = 0
    words_read: int = 0
