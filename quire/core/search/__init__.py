"""
Search within the open document.
"""

from .models import SearchResult
from .search_engine import MAX_RESULTS, DocumentSearchEngine, search_document
from .search_worker import SearchWorker

__all__ = [
    "SearchResult",
    "DocumentSearchEngine",
    "SearchWorker",
    "search_document",
    "MAX_RESULTS",
]
