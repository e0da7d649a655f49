"""
Background worker for document search operations.
"""
import logging

from PyQt5.QtCore import QThread, pyqtSignal

from ..document import open_document
from ..document.markup import DEFAULT_TEXT_WIDTH
from ..document.pdf_reader import DEFAULT_RASTER_DPI
from ..errors import QuireError
from ..layout import SizingPolicy
from ..workers.channel import SEARCH_TOPIC, ResultChannel
from .search_engine import search_document

logger = logging.getLogger(__name__)


class SearchWorker(QThread):
    """Worker thread for searching large documents without freezing the UI."""

    # Signals
    progress = pyqtSignal(int, int)  # units scanned, total units
    completed = pyqtSignal(int)  # total results count
    error = pyqtSignal(str)  # error message

    def __init__(self, channel: ResultChannel, generation: int, path: str,
                 search_term: str, text_width: int = DEFAULT_TEXT_WIDTH,
                 raster_dpi: int = DEFAULT_RASTER_DPI,
                 policy: SizingPolicy = SizingPolicy(), parent=None):
        super().__init__(parent)
        self._channel = channel
        self._generation = generation
        self._path = path
        self._search_term = search_term
        self._text_width = text_width
        self._raster_dpi = raster_dpi
        self._policy = policy
        self._cancelled = False

    def cancel(self):
        """Cancel the search operation."""
        self._cancelled = True

    def run(self):
        """Execute the search in background thread."""
        try:
            # Same reflow as the session buffer the line indices point into
            with open_document(self._path, self._text_width, self._raster_dpi) as document:
                results = search_document(
                    document,
                    self._search_term,
                    self._policy,
                    progress=self.progress.emit,
                    cancelled=lambda: self._cancelled,
                )
        except QuireError as e:
            logger.warning("Search in %s failed: %s", self._path, e)
            self._channel.post(SEARCH_TOPIC, self._generation, error=str(e))
            self.error.emit(str(e))
            return

        if self._cancelled:
            return

        self._channel.post(SEARCH_TOPIC, self._generation, (self._search_term, results))
        self.completed.emit(len(results))
