"""
Document search functionality with result management.
"""
from typing import Callable, List, Optional

from ..document import Document
from ..layout import SizingPolicy, TextLine, flatten
from .models import SearchResult

MAX_RESULTS = 50


def search_document(
    document: Document,
    search_term: str,
    policy: SizingPolicy = SizingPolicy(),
    progress: Optional[Callable[[int, int], None]] = None,
    cancelled: Optional[Callable[[], bool]] = None,
    max_results: int = MAX_RESULTS,
) -> List[SearchResult]:
    """
    Find render lines containing a term, ignoring case.

    Line indices refer to the flattened render buffer, so a result can
    be jumped to directly.

    Args:
        document: Open document
        search_term: Text to search for
        policy: Sizing policy used to flatten units
        progress: Called with (units scanned, total units)
        cancelled: Polled between units; a true result stops the scan
        max_results: Stop after this many matches

    Returns:
        Matches in reading order
    """
    needle = search_term.lower()
    results: List[SearchResult] = []
    if not needle:
        return results

    total_units = document.unit_count()
    for unit_index in range(total_units):
        if cancelled is not None and cancelled():
            break
        if progress is not None:
            progress(unit_index + 1, total_units)

        lines, _ = flatten(document.unit_content(unit_index), policy)
        for line_index, line in enumerate(lines):
            if isinstance(line, TextLine) and needle in line.text.lower():
                results.append(SearchResult(unit_index, line_index, line.text.strip()))
                if len(results) >= max_results:
                    return results
    return results


class DocumentSearchEngine:
    """Handles text search within the open document."""

    def __init__(self, policy: SizingPolicy = SizingPolicy()):
        self.search_results: List[SearchResult] = []
        self.current_search_index: int = -1
        self.current_search_term: str = ""
        self._document: Optional[Document] = None
        self._policy = policy

    def set_document(self, document: Optional[Document]) -> None:
        """
        Set the document to search in.

        Args:
            document: Open document, or None to detach
        """
        self._document = document
        self.clear_search()

    def clear_search(self) -> None:
        """Reset all search state."""
        self.search_results = []
        self.current_search_index = -1
        self.current_search_term = ""

    def execute_search(self, search_term: str) -> int:
        """
        Perform a new search across the entire document.

        Args:
            search_term: Text to search for

        Returns:
            Number of results found
        """
        if not self._document or not search_term:
            self.clear_search()
            return 0

        # Only search if term has changed
        if search_term == self.current_search_term:
            return len(self.search_results)

        self.set_results(search_term, search_document(self._document, search_term, self._policy))
        return len(self.search_results)

    def set_results(self, search_term: str, results: List[SearchResult]) -> None:
        """Adopt results computed elsewhere, e.g. by a SearchWorker."""
        self.current_search_term = search_term
        self.search_results = list(results)
        self.current_search_index = -1

    def get_current_result(self) -> Optional[SearchResult]:
        if 0 <= self.current_search_index < len(self.search_results):
            return self.search_results[self.current_search_index]
        return None

    def next_result(self) -> Optional[SearchResult]:
        """
        Move to the next search result, wrapping around.

        Returns:
            The next result, or None without results
        """
        if not self.search_results:
            return None

        self.current_search_index = (self.current_search_index + 1) % len(self.search_results)
        return self.search_results[self.current_search_index]

    def previous_result(self) -> Optional[SearchResult]:
        """
        Move to the previous search result, wrapping around.

        Returns:
            The previous result, or None without results
        """
        if not self.search_results:
            return None

        count = len(self.search_results)
        self.current_search_index = (self.current_search_index - 1 + count) % count
        return self.search_results[self.current_search_index]

    def get_result_count(self) -> int:
        """Get total number of search results."""
        return len(self.search_results)

    def get_current_index(self) -> int:
        """Get current result index (0-based, -1 if none)."""
        return self.current_search_index
