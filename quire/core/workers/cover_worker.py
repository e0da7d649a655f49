"""
Background worker for cover previews.
"""
from PyQt5.QtCore import QThread, pyqtSignal

from ..document import load_cover_image
from .channel import COVER_TOPIC, ResultChannel


class CoverWorker(QThread):
    """Loads a downscaled cover without blocking the UI thread."""

    found = pyqtSignal(bool)  # whether a cover was found

    def __init__(self, channel: ResultChannel, generation: int, path: str, parent=None):
        super().__init__(parent)
        self._channel = channel
        self._generation = generation
        self._path = path
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    def run(self):
        # load_cover_image never raises; a missing cover posts None
        cover = load_cover_image(self._path)
        if self._cancelled:
            return
        self._channel.post(COVER_TOPIC, self._generation, (self._path, cover))
        self.found.emit(cover is not None)
