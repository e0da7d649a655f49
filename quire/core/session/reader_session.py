"""
Reading session: ties the open document, the render buffer, navigation,
annotations, search and progress tracking together.
"""
import logging
import time
from typing import Dict, List, Optional, Tuple

import pyperclip
from PIL import Image
from PyQt5.QtCore import QObject, QThread, pyqtSignal

from ...config import LINE_SPACING_RANGE, MARGIN_RANGE, ReaderConfig
from ..annotations import (
    Annotation,
    AnnotationFilter,
    AnnotationKind,
    AnnotationOverlay,
    AnnotationStore,
    ReadingProgress,
    export_markdown,
)
from ..document import Document, TocEntry, open_document
from ..layout import RenderLine, SizingPolicy, flatten
from ..navigation import NavigationModel, SelectionRange
from ..search import DocumentSearchEngine, SearchResult, SearchWorker
from ..workers import (
    COVER_TOPIC,
    SEARCH_TOPIC,
    UNIT_TOPIC,
    CoverWorker,
    LoadedUnit,
    ResultChannel,
    TaskResult,
    UnitLoadWorker,
)

logger = logging.getLogger(__name__)


class ReaderSession(QObject):
    """
    Owns everything that changes while a book is open.

    Entering a unit runs extraction, flattening, cursor placement and
    annotation reload in that order. Blocking work can be pushed to
    workers with request_unit()/request_search(); their results are
    applied by poll(), which the UI calls once per frame.
    """

    # Signals
    book_opened = pyqtSignal(str)  # path
    book_closed = pyqtSignal()
    unit_loaded = pyqtSignal(int)  # unit_index
    annotations_changed = pyqtSignal()

    def __init__(self, config: Optional[ReaderConfig] = None,
                 policy: SizingPolicy = SizingPolicy(), parent=None):
        super().__init__(parent)
        self.config = config or ReaderConfig()
        self.policy = policy

        self.navigation = NavigationModel(self)
        self.channel = ResultChannel()
        self.search_engine = DocumentSearchEngine(policy)

        self.document: Optional[Document] = None
        self.store: Optional[AnnotationStore] = None
        self.overlay: Optional[AnnotationOverlay] = None
        self.unit_index: int = 0
        self.images: List[Image.Image] = []
        self.cover: Optional[Image.Image] = None

        self._workers: Dict[str, QThread] = {}
        self._retired: List[QThread] = []
        self._clock = time.monotonic
        self._start_time: float = 0.0
        self._words_at_open: int = 0
        self._words_logged: int = 0

    # ------------------------------------------------------------------
    # Book lifecycle
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self.document is not None

    def open_book(self, path: str) -> None:
        """
        Open a book and enter its first (or last read) unit.

        Args:
            path: Path to an EPUB or PDF file

        Raises:
            DocumentOpenError: If the book cannot be opened; the session
                keeps whatever was open before
        """
        document = open_document(path, self.config.text_width, self.config.raster_dpi)

        if self.document is not None:
            self.close_book()

        self.document = document
        self.store = AnnotationStore(str(self.config.resolve_data_dir()), path)
        self.overlay = AnnotationOverlay(self.store)
        self.search_engine.set_document(document)

        progress = self.store.load_progress() if self.config.auto_resume else None
        words_read = progress.words_read if progress else 0
        self.navigation.words_read = words_read
        self._words_at_open = words_read
        self._words_logged = words_read
        self._start_time = self._clock()

        if progress is not None:
            logger.info("Resuming %s at unit %d, line %d", path, progress.unit_index, progress.line)
            self.load_unit(progress.unit_index, progress.line)
        else:
            self.load_unit(0)
        self.book_opened.emit(path)

    def close_book(self) -> None:
        """Save progress and release the open book."""
        if self.document is None:
            return

        self.save_progress()
        for worker in self._workers.values():
            worker.cancel()
            self._retired.append(worker)
        self._workers.clear()
        # Invalidate anything still in flight for this book
        for topic in (UNIT_TOPIC, COVER_TOPIC, SEARCH_TOPIC):
            self.channel.next_generation(topic)

        self.document.close()
        self.document = None
        self.store = None
        self.overlay = None
        self.unit_index = 0
        self.images = []
        self.cover = None
        self.search_engine.set_document(None)
        self.navigation.set_buffer([])
        self.navigation.words_read = 0
        self.book_closed.emit()

    def metadata(self) -> Tuple[str, str]:
        if self.document is None:
            return ("", "")
        return self.document.metadata()

    def unit_count(self) -> int:
        return self.document.unit_count() if self.document else 0

    # ------------------------------------------------------------------
    # Units
    # ------------------------------------------------------------------

    def load_unit(self, index: int, line: int = 0, word: int = 0) -> bool:
        """
        Extract, flatten and enter a unit.

        Args:
            index: Unit index, clamped to the document
            line: Line to put the cursor and viewport top on
            word: Word to put the cursor on

        Returns:
            False if no book is open
        """
        if self.document is None:
            return False

        index = max(0, min(index, self.unit_count() - 1))
        # A synchronous load supersedes any pending background load
        self.channel.next_generation(UNIT_TOPIC)
        lines, images = flatten(self.document.unit_content(index), self.policy)
        self._enter_unit(index, lines, images, line, word)
        return True

    def _enter_unit(self, index: int, lines: List[RenderLine], images: List[Image.Image],
                    line: int = 0, word: int = 0) -> None:
        self.unit_index = index
        self.images = images
        self.navigation.set_buffer(lines, line, word)
        self.overlay.reload(index)
        self.unit_loaded.emit(index)
        self.save_progress()

    def next_unit(self) -> bool:
        if self.document is None or self.unit_index + 1 >= self.unit_count():
            return False
        return self.load_unit(self.unit_index + 1)

    def prev_unit(self) -> bool:
        if self.document is None or self.unit_index == 0:
            return False
        return self.load_unit(self.unit_index - 1)

    def toc_entries(self) -> List[TocEntry]:
        return self.document.toc_entries() if self.document else []

    def jump_to_toc(self, toc_index: int) -> bool:
        """Enter the unit a table of contents entry points at."""
        entries = self.toc_entries()
        if not 0 <= toc_index < len(entries):
            return False
        return self.load_unit(entries[toc_index].unit_index)

    # ------------------------------------------------------------------
    # Layout settings
    # ------------------------------------------------------------------

    def adjust_margin(self, delta: int) -> int:
        """
        Change the side margin and rebuild the current unit.

        Returns:
            The new margin
        """
        low, high = MARGIN_RANGE
        self.config.margin = max(low, min(high, self.config.margin + delta))
        self.load_unit(self.unit_index)
        return self.config.margin

    def adjust_spacing(self, delta: int) -> int:
        """
        Change the line spacing and rebuild the current unit.

        Returns:
            The new line spacing
        """
        low, high = LINE_SPACING_RANGE
        self.config.line_spacing = max(low, min(high, self.config.line_spacing + delta))
        self.load_unit(self.unit_index)
        return self.config.line_spacing

    # ------------------------------------------------------------------
    # Annotations
    # ------------------------------------------------------------------

    def add_quick_annotation(self, kind: AnnotationKind = AnnotationKind.HIGHLIGHT) -> Optional[Annotation]:
        """
        Annotate the selection, or the word under the cursor.

        Returns:
            The new annotation, or None if there was nothing to annotate
        """
        if self.overlay is None:
            return None

        nav = self.navigation
        if nav.has_selection:
            selection = nav.active_range()
            content = nav.selected_text()
        else:
            content = nav.word_under_cursor()
            if content is None:
                return None
            selection = SelectionRange(nav.line, nav.word, nav.line, nav.word)

        return self._create_annotation(selection, content, None, kind)

    def add_note(self, note: str) -> Optional[Annotation]:
        """
        Attach a note to the selection, or to the whole cursor line.

        Returns:
            The new summary annotation, or None if there was nothing to annotate
        """
        if self.overlay is None:
            return None

        nav = self.navigation
        if nav.has_selection:
            selection = nav.active_range()
            content = nav.selected_text()
        else:
            content = nav.current_line_text()
            if content is None:
                return None
            last_word = max(len(content.split()) - 1, 0)
            selection = SelectionRange(nav.line, 0, nav.line, last_word)

        return self._create_annotation(selection, content.strip(), note, AnnotationKind.SUMMARY)

    def _create_annotation(self, selection: SelectionRange, content: str,
                           note: Optional[str], kind: AnnotationKind) -> Optional[Annotation]:
        annotation = self.overlay.create(self.unit_index, selection, content, note, kind)
        if annotation is not None:
            self.navigation.exit_selection()
            self.annotations_changed.emit()
        return annotation

    def annotation_at(self, line: int, word: int) -> Optional[Annotation]:
        return self.overlay.membership(line, word) if self.overlay else None

    def open_annotation_list(self) -> List[Annotation]:
        if self.overlay is None:
            return []
        return self.overlay.load_all()

    def set_annotation_filter(self, selector: AnnotationFilter) -> List[Annotation]:
        if self.overlay is None:
            return []
        return self.overlay.filter(selector)

    def jump_to_annotation(self, index: Optional[int] = None) -> bool:
        """
        Move to the start of an annotation from the list.

        Jumps inside the open unit only reposition the cursor; jumps to
        another unit load it first.

        Args:
            index: Position in the visible list, the list selection by default
        """
        if self.overlay is None:
            return False
        target = self.overlay.locate(index)
        if target is None:
            return False

        if target.unit_index != self.unit_index:
            return self.load_unit(target.unit_index, target.line, target.word)
        self.navigation.jump_to(target.line, target.word)
        return True

    def delete_annotation(self, annotation: Annotation) -> bool:
        if self.overlay is None or not self.overlay.delete(annotation):
            return False
        self.annotations_changed.emit()
        return True

    def export_annotations(self, output_dir: str = ".") -> Optional[str]:
        """
        Write every annotation of the book to a Markdown file.

        Returns:
            Path of the written file, or None if no book is open
        """
        if self.document is None:
            return None
        title, author = self.metadata()
        return export_markdown(self.store.all_annotations(), title, author,
                               self.document.path, output_dir)

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def save_progress(self) -> bool:
        """
        Persist the reading position and log newly read words.

        Returns:
            True if the progress was written
        """
        if self.store is None:
            return False

        words_read = self.navigation.words_read
        self.store.log_session_words(words_read - self._words_logged)
        self._words_logged = words_read
        return self.store.save_progress(
            ReadingProgress(self.unit_index, self.navigation.line, words_read)
        )

    def reading_stats(self) -> Tuple[int, float]:
        """
        Get (words read, words per minute).

        The word count is cumulative over the book; the speed covers the
        words read since the book was opened.
        """
        if self.document is None:
            return (0, 0.0)
        words_read = self.navigation.words_read
        elapsed_minutes = (self._clock() - self._start_time) / 60.0
        if elapsed_minutes <= 0.01:
            return (words_read, 0.0)
        return (words_read, (words_read - self._words_at_open) / elapsed_minutes)

    def daily_progress(self) -> Tuple[int, int]:
        """Get (words read today, daily goal)."""
        if self.store is None:
            return (0, self.config.daily_goal_words)
        unlogged = self.navigation.words_read - self._words_logged
        return (self.store.session_words() + unlogged, self.config.daily_goal_words)

    # ------------------------------------------------------------------
    # Clipboard
    # ------------------------------------------------------------------

    def copy_selection(self) -> bool:
        """
        Copy the selected text to the system clipboard.

        Returns:
            True if something was copied
        """
        text = self.navigation.selected_text()
        if not text:
            return False
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            logger.warning("Clipboard unavailable: %s", e)
            return False
        return True

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search(self, term: str) -> int:
        """
        Search the whole book.

        Returns:
            Number of matching lines
        """
        return self.search_engine.execute_search(term)

    def next_search_result(self) -> Optional[SearchResult]:
        return self.search_engine.next_result()

    def previous_search_result(self) -> Optional[SearchResult]:
        return self.search_engine.previous_result()

    def jump_to_search_result(self) -> bool:
        """Enter the unit of the current search result and put the cursor on its line."""
        result = self.search_engine.get_current_result()
        if result is None:
            return False
        if result.unit_index != self.unit_index:
            return self.load_unit(result.unit_index, result.line_index)
        self.navigation.jump_to(result.line_index)
        return True

    # ------------------------------------------------------------------
    # Background work
    # ------------------------------------------------------------------

    def _replace_worker(self, topic: str, worker: QThread, start: bool) -> QThread:
        previous = self._workers.get(topic)
        if previous is not None:
            previous.cancel()
            # A running QThread must stay referenced until it finishes
            self._retired.append(previous)
        self._retired = [w for w in self._retired if w.isRunning()]
        self._workers[topic] = worker
        if start:
            worker.start()
        return worker

    def request_unit(self, index: int, start: bool = True) -> Optional[UnitLoadWorker]:
        """
        Load a unit in the background.

        The unit is entered by the next poll() that sees the result,
        unless another unit was requested or loaded in the meantime.

        Args:
            index: Unit to load
            start: Start the worker thread right away

        Returns:
            The worker, or None if no book is open
        """
        if self.document is None:
            return None
        index = max(0, min(index, self.unit_count() - 1))
        generation = self.channel.next_generation(UNIT_TOPIC)
        worker = UnitLoadWorker(self.channel, generation, self.document.path, index,
                                self.config.text_width, self.config.raster_dpi, self.policy)
        return self._replace_worker(UNIT_TOPIC, worker, start)

    def request_cover(self, path: Optional[str] = None, start: bool = True) -> Optional[CoverWorker]:
        path = path or (self.document.path if self.document else None)
        if path is None:
            return None
        generation = self.channel.next_generation(COVER_TOPIC)
        return self._replace_worker(COVER_TOPIC, CoverWorker(self.channel, generation, path), start)

    def request_search(self, term: str, start: bool = True) -> Optional[SearchWorker]:
        if self.document is None or not term:
            return None
        generation = self.channel.next_generation(SEARCH_TOPIC)
        worker = SearchWorker(self.channel, generation, self.document.path, term,
                              self.config.text_width, self.config.raster_dpi, self.policy)
        return self._replace_worker(SEARCH_TOPIC, worker, start)

    def poll(self) -> List[TaskResult]:
        """
        Apply finished background results; call once per frame.

        Returns:
            The results that were applied
        """
        applied = []
        for result in self.channel.poll():
            if not result.ok:
                logger.warning("Background %s task failed: %s", result.topic, result.error)
                continue
            if result.topic == UNIT_TOPIC and self.document is not None:
                loaded: LoadedUnit = result.payload
                self._enter_unit(loaded.unit_index, loaded.lines, loaded.images)
            elif result.topic == COVER_TOPIC:
                _, self.cover = result.payload
            elif result.topic == SEARCH_TOPIC:
                term, results = result.payload
                self.search_engine.set_results(term, results)
            else:
                continue
            applied.append(result)
        return applied
