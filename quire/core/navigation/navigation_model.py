"""
Cursor, viewport and selection state over one render buffer.
"""

from typing import List, Optional, Sequence

from PyQt5.QtCore import QObject, pyqtSignal

from ..layout.models import ImageRow, RenderLine, TextLine, split_words
from .models import Cursor, Direction, SelectionRange


class NavigationModel(QObject):
    """
    Word-granular cursor navigation over a render buffer.

    Supports:
    - Line-by-line viewport scrolling with a words-read counter
    - Vertical and horizontal cursor movement with auto-scroll
    - Anchor-based selection and selected-text extraction

    All index arithmetic saturates; no operation reads past the buffer.
    """

    # Signals
    cursor_moved = pyqtSignal(int, int)  # line, word
    viewport_changed = pyqtSignal(int)  # viewport_top
    selection_changed = pyqtSignal()

    SCROLL_MARGIN = 2

    def __init__(self, parent=None):
        super().__init__(parent)

        self.lines: List[RenderLine] = []
        self.viewport_top: int = 0
        self.line: int = 0
        self.word: int = 0
        self.anchor: Optional[Cursor] = None

        # Words scrolled past the top of the viewport
        self.words_read: int = 0

    # ------------------------------------------------------------------
    # Buffer
    # ------------------------------------------------------------------

    def set_buffer(self, lines: Sequence[RenderLine], line: int = 0, word: int = 0) -> None:
        """
        Replace the render buffer and place the cursor.

        The cursor and viewport start at `line`; both are clamped to the
        new buffer. Any selection is dropped.
        """
        self.lines = list(lines)
        self.anchor = None
        self.line = line
        self.word = word
        self.viewport_top = line
        self.revalidate()
        self.selection_changed.emit()

    def revalidate(self) -> None:
        """Clamp cursor, viewport and anchor to the current buffer."""
        last = max(len(self.lines) - 1, 0)
        self.line = max(0, min(self.line, last))
        self.viewport_top = max(0, min(self.viewport_top, last))
        self.word = self._clamp_word(self.line, self.word)
        if self.anchor is not None:
            anchor_line = max(0, min(self.anchor.line, last))
            self.anchor = Cursor(anchor_line, self._clamp_word(anchor_line, self.anchor.word))
        self.cursor_moved.emit(self.line, self.word)

    @property
    def cursor(self) -> Cursor:
        return Cursor(self.line, self.word)

    def line_at(self, index: int) -> Optional[RenderLine]:
        if 0 <= index < len(self.lines):
            return self.lines[index]
        return None

    def current_line_text(self) -> Optional[str]:
        """Text of the cursor line, None on an image row."""
        current = self.line_at(self.line)
        return current.text if isinstance(current, TextLine) else None

    def word_under_cursor(self) -> Optional[str]:
        text = self.current_line_text()
        if text is None:
            return None
        words = split_words(text)
        return words[self.word] if self.word < len(words) else None

    def _word_count(self, index: int) -> int:
        current = self.line_at(index)
        if isinstance(current, TextLine):
            return current.word_count
        return 0

    def _clamp_word(self, index: int, word: int) -> int:
        count = self._word_count(index)
        if count == 0:
            return 0
        return max(0, min(word, count - 1))

    # ------------------------------------------------------------------
    # Viewport
    # ------------------------------------------------------------------

    def scroll_viewport(self, delta: int = 1) -> None:
        """
        Scroll the viewport by one line.

        Scrolling down counts the words of the line leaving the top and
        drags the cursor along if it would fall above the new top.
        """
        if delta > 0:
            if self.viewport_top + 1 >= len(self.lines):
                return
            self.words_read += self._word_count(self.viewport_top)
            self.viewport_top += 1
            if self.line < self.viewport_top:
                self.line = self.viewport_top
                self.word = self._clamp_word(self.line, self.word)
                self.cursor_moved.emit(self.line, self.word)
            self.viewport_changed.emit(self.viewport_top)
        elif delta < 0:
            if self.viewport_top == 0:
                return
            self.viewport_top -= 1
            self.viewport_changed.emit(self.viewport_top)

    def _ensure_visible(self, viewport_height: int) -> None:
        visible = max(viewport_height - self.SCROLL_MARGIN, 1)
        old_top = self.viewport_top
        if self.line < self.viewport_top:
            self.viewport_top = self.line
        elif self.line >= self.viewport_top + visible:
            self.viewport_top = self.line - visible + 1
        if self.viewport_top != old_top:
            self.viewport_changed.emit(self.viewport_top)

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def move_cursor(self, direction: Direction, viewport_height: int) -> None:
        """
        Move the cursor one step.

        Args:
            direction: Movement direction
            viewport_height: Visible lines, used for auto-scrolling
        """
        if not self.lines:
            return

        if direction == Direction.DOWN:
            if self.line + 1 < len(self.lines):
                self.line += 1
                self.word = self._clamp_word(self.line, self.word)
        elif direction == Direction.UP:
            if self.line > 0:
                self.line -= 1
                self.word = self._clamp_word(self.line, self.word)
        elif direction == Direction.RIGHT:
            self._step_right()
        elif direction == Direction.LEFT:
            self._step_left()

        self._ensure_visible(viewport_height)
        self.cursor_moved.emit(self.line, self.word)

    def _step_right(self) -> None:
        current = self.lines[self.line]
        if isinstance(current, TextLine) and self.word + 1 < current.word_count:
            self.word += 1
            return

        # Leave the whole image, not just the current row
        target = self._image_end(self.line) + 1 if isinstance(current, ImageRow) else self.line + 1
        if target < len(self.lines):
            self.line = target
            self.word = 0

    def _step_left(self) -> None:
        current = self.lines[self.line]
        if isinstance(current, TextLine) and self.word > 0:
            self.word -= 1
            return

        target = self._image_start(self.line) - 1 if isinstance(current, ImageRow) else self.line - 1
        if target < 0:
            return

        if isinstance(self.lines[target], ImageRow):
            # Entering an image lands on its first row
            self.line = self._image_start(target)
            self.word = 0
        else:
            self.line = target
            self.word = max(self._word_count(target) - 1, 0)

    def _image_start(self, index: int) -> int:
        image_index = self.lines[index].image_index
        while index > 0:
            previous = self.lines[index - 1]
            if not (isinstance(previous, ImageRow) and previous.image_index == image_index):
                break
            index -= 1
        return index

    def _image_end(self, index: int) -> int:
        image_index = self.lines[index].image_index
        while index + 1 < len(self.lines):
            following = self.lines[index + 1]
            if not (isinstance(following, ImageRow) and following.image_index == image_index):
                break
            index += 1
        return index

    def jump_to(self, line: int, word: int = 0) -> None:
        """Put the cursor and the viewport top on a line and drop the selection."""
        had_selection = self.anchor is not None
        self.anchor = None
        self.line = line
        self.word = word
        self.viewport_top = line
        self.revalidate()
        self.viewport_changed.emit(self.viewport_top)
        if had_selection:
            self.selection_changed.emit()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def enter_selection(self) -> None:
        """Anchor the selection at the cursor."""
        self.anchor = self.cursor
        self.selection_changed.emit()

    def exit_selection(self) -> None:
        """Clear the selection anchor."""
        if self.anchor is not None:
            self.anchor = None
            self.selection_changed.emit()

    @property
    def has_selection(self) -> bool:
        return self.anchor is not None

    def active_range(self) -> Optional[SelectionRange]:
        """
        Get the selection with the earlier position first.

        Returns:
            The ordered range, or None without an anchor
        """
        if self.anchor is None:
            return None
        start, end = sorted((self.anchor, self.cursor))
        return SelectionRange(start.line, start.word, end.line, end.word)

    def selected_text(self) -> str:
        """Selected words joined by single spaces; image rows contribute nothing."""
        selection = self.active_range()
        if selection is None:
            return ""
        return text_in_range(self.lines, selection)


def text_in_range(lines: Sequence[RenderLine], selection: SelectionRange) -> str:
    """
    Words covered by a range, joined by single spaces.

    Interior lines contribute all their words; the first and last lines
    are cut at the start and end word.
    """
    sl, sw, el, ew = selection
    selected: List[str] = []
    for index in range(max(sl, 0), min(el, len(lines) - 1) + 1):
        current = lines[index]
        if not isinstance(current, TextLine):
            continue
        words = current.words
        first = sw if index == sl else 0
        last = min(ew, len(words) - 1) if index == el else len(words) - 1
        selected.extend(words[first:last + 1])
    return " ".join(selected)
