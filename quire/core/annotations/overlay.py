"""
Maps persisted annotation ranges onto the current render buffer.
"""
import logging
from typing import List, Optional

from ..navigation.models import SelectionRange
from .models import Annotation, AnnotationFilter, AnnotationKind, JumpTarget
from .persistence import AnnotationStore

logger = logging.getLogger(__name__)


class AnnotationOverlay:
    """
    Annotations of the open unit plus the filtered annotation list.

    The unit set drives per-word styling through membership(); the list
    set backs the annotation browser and jump-to.
    """

    def __init__(self, store: AnnotationStore):
        self.store = store
        self.unit_index: Optional[int] = None
        self.unit_annotations: List[Annotation] = []

        # Annotation list
        self.all_annotations: List[Annotation] = []
        self.visible: List[Annotation] = []
        self.active_filter = AnnotationFilter.ALL
        self.selected_index: int = 0

    def reload(self, unit_index: int) -> None:
        """
        Load the annotations of one unit.

        Args:
            unit_index: Unit whose annotations become current
        """
        self.unit_index = unit_index
        self.unit_annotations = self.store.annotations_for_unit(unit_index)

    def create(
        self,
        unit_index: int,
        selection: SelectionRange,
        content: str,
        note: Optional[str] = None,
        kind: AnnotationKind = AnnotationKind.HIGHLIGHT,
    ) -> Optional[Annotation]:
        """
        Persist a new annotation and reload the unit it belongs to.

        Args:
            unit_index: Unit holding the range
            selection: Ordered word range
            content: Text snapshot of the range
            note: Optional free-form note
            kind: Annotation kind

        Returns:
            The stored annotation, or None when there is nothing to store
        """
        if not content.strip():
            logger.debug("Not storing an annotation without content")
            return None

        annotation = Annotation(
            unit_index=unit_index,
            start_line=selection.start_line,
            start_word=selection.start_word,
            end_line=selection.end_line,
            end_word=selection.end_word,
            content=content,
            note=note or None,
            kind=kind,
        )
        self.store.add_annotation(annotation)
        self.reload(unit_index)
        return annotation

    def delete(self, annotation: Annotation) -> bool:
        if annotation.id is None or not self.store.delete_annotation(annotation.id):
            return False
        if self.unit_index is not None:
            self.reload(self.unit_index)
        if self.all_annotations:
            self.load_all()
        return True

    def membership(self, line: int, word: int) -> Optional[Annotation]:
        """First annotation of the open unit covering the word, if any."""
        for annotation in self.unit_annotations:
            if annotation.contains(line, word):
                return annotation
        return None

    # ------------------------------------------------------------------
    # Annotation list
    # ------------------------------------------------------------------

    def load_all(self) -> List[Annotation]:
        """Reload every annotation of the book and re-apply the filter."""
        self.all_annotations = self.store.all_annotations()
        self.filter(self.active_filter)
        return self.visible

    def filter(self, selector: AnnotationFilter) -> List[Annotation]:
        """
        Recompute the visible list for a filter.

        The list selection goes back to the first entry.
        """
        self.active_filter = selector
        self.visible = [ann for ann in self.all_annotations if selector.accepts(ann.kind)]
        self.selected_index = 0
        return self.visible

    def select_next(self) -> None:
        if self.selected_index + 1 < len(self.visible):
            self.selected_index += 1

    def select_previous(self) -> None:
        if self.selected_index > 0:
            self.selected_index -= 1

    def selected(self) -> Optional[Annotation]:
        if 0 <= self.selected_index < len(self.visible):
            return self.visible[self.selected_index]
        return None

    def locate(self, index: Optional[int] = None) -> Optional[JumpTarget]:
        """
        Where a visible annotation starts.

        Args:
            index: Position in the visible list, the list selection by default

        Returns:
            Jump target, or None if the index is out of range
        """
        if index is None:
            index = self.selected_index
        if not 0 <= index < len(self.visible):
            return None
        annotation = self.visible[index]
        return JumpTarget(annotation.unit_index, annotation.start_line, annotation.start_word)
