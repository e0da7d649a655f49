from enum import Enum
from typing import NamedTuple


class Direction(Enum):
    """Cursor movement directions."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


class Cursor(NamedTuple):
    """A (line, word) position; tuples compare lexicographically."""

    line: int
    word: int


class SelectionRange(NamedTuple):
    """An ordered selection, earlier position first."""

    start_line: int
    start_word: int
    end_line: int
    end_word: int

    @property
    def start(self) -> Cursor:
        return Cursor(self.start_line, self.start_word)

    @property
    def end(self) -> Cursor:
        return Cursor(self.end_line, self.end_word)
