"""
Background workers and the channel they report through.
"""

from .channel import COVER_TOPIC, SEARCH_TOPIC, UNIT_TOPIC, ResultChannel, TaskResult
from .cover_worker import CoverWorker
from .unit_loader import LoadedUnit, UnitLoadWorker

__all__ = [
    "ResultChannel",
    "TaskResult",
    "UNIT_TOPIC",
    "COVER_TOPIC",
    "SEARCH_TOPIC",
    "LoadedUnit",
    "UnitLoadWorker",
    "CoverWorker",
]
