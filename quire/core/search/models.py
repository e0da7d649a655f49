from dataclasses import dataclass


@dataclass
class SearchResult:
    """Represents a single matching line."""
    unit_index: int
    line_index: int
    text: str = ""  # Trimmed line text
