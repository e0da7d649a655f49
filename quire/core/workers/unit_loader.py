"""
Background worker that extracts and flattens one unit.
"""
import logging
from dataclasses import dataclass, field
from typing import List

from PIL import Image
from PyQt5.QtCore import QThread, pyqtSignal

from ..document import open_document
from ..document.markup import DEFAULT_TEXT_WIDTH
from ..document.pdf_reader import DEFAULT_RASTER_DPI
from ..errors import QuireError
from ..layout import RenderLine, SizingPolicy, flatten
from .channel import UNIT_TOPIC, ResultChannel

logger = logging.getLogger(__name__)


@dataclass
class LoadedUnit:
    """A ready render buffer for one unit."""
    unit_index: int
    lines: List[RenderLine] = field(default_factory=list)
    images: List[Image.Image] = field(default_factory=list)


class UnitLoadWorker(QThread):
    """Worker thread that builds a unit's render buffer off the UI thread."""

    # Signals
    loaded = pyqtSignal(int)  # unit_index
    error = pyqtSignal(str)  # error message

    def __init__(self, channel: ResultChannel, generation: int, path: str,
                 unit_index: int, text_width: int = DEFAULT_TEXT_WIDTH,
                 raster_dpi: int = DEFAULT_RASTER_DPI,
                 policy: SizingPolicy = SizingPolicy(), parent=None):
        super().__init__(parent)
        self._channel = channel
        self._generation = generation
        self._path = path
        self._unit_index = unit_index
        self._text_width = text_width
        self._raster_dpi = raster_dpi
        self._policy = policy
        self._cancelled = False

    @property
    def generation(self) -> int:
        return self._generation

    def cancel(self):
        """Ask the worker not to post its result."""
        self._cancelled = True

    def run(self):
        """Open a private document handle and build the unit."""
        try:
            # Each worker owns its handle; document backends are not thread-safe
            with open_document(self._path, self._text_width, self._raster_dpi) as document:
                items = document.unit_content(self._unit_index)
            lines, images = flatten(items, self._policy)
        except QuireError as e:
            logger.warning("Loading unit %d of %s failed: %s", self._unit_index, self._path, e)
            if not self._cancelled:
                self._channel.post(UNIT_TOPIC, self._generation, error=str(e))
            self.error.emit(str(e))
            return

        if self._cancelled:
            logger.debug("Unit %d load cancelled", self._unit_index)
            return

        self._channel.post(UNIT_TOPIC, self._generation,
                           LoadedUnit(self._unit_index, lines, images))
        self.loaded.emit(self._unit_index)
