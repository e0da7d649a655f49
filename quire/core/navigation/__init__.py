"""Cursor and selection navigation."""

from .models import Cursor, Direction, SelectionRange
from .navigation_model import NavigationModel, text_in_range

__all__ = ["NavigationModel", "Cursor", "Direction", "SelectionRange", "text_in_range"]
