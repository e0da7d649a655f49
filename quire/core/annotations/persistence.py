"""
Handles persistence of annotations, reading progress and reading
sessions to/from one JSON file per book.
"""
import hashlib
import json
import logging
import os
from datetime import date
from typing import Dict, List, Optional

from .models import Annotation, ReadingProgress

logger = logging.getLogger(__name__)


class AnnotationStore:
    """Saves and loads everything Quire remembers about one book."""

    def __init__(self, data_dir: str, book_path: str):
        self.data_dir = str(data_dir)
        self.book_path = os.path.abspath(book_path)
        self._data = self._empty()
        self.load_from_json()

    @staticmethod
    def _empty() -> dict:
        return {'annotations': [], 'next_id': 1, 'progress': None, 'sessions': {}}

    def get_json_path(self) -> str:
        """
        Get the JSON file path for the current book.

        Returns:
            Path to the corresponding JSON file
        """
        # Hash the book path so each book gets its own file wherever it lives
        path_hash = hashlib.md5(self.book_path.encode()).hexdigest()
        return os.path.join(self.data_dir, 'annotations', f"{path_hash}.json")

    def save_to_json(self) -> bool:
        """
        Write the book's data to disk.

        Returns:
            True if save was successful, False otherwise
        """
        file_path = self.get_json_path()
        data = dict(self._data, book_path=self.book_path)
        try:
            os.makedirs(os.path.dirname(file_path), exist_ok=True)
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            return True
        except OSError as e:
            logger.error("Failed to save annotations to %s: %s", file_path, e)
            return False

    def load_from_json(self) -> bool:
        """
        Load the book's data from disk.

        An unreadable file loads as empty.

        Returns:
            True if a file was found and read
        """
        file_path = self.get_json_path()
        self._data = self._empty()
        if not os.path.exists(file_path):
            return False

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Failed to load annotations from %s: %s", file_path, e)
            return False

        stored_path = data.get('book_path')
        if stored_path != self.book_path:
            logger.warning("Annotation file %s is for a different book: %s", file_path, stored_path)

        for key in ('annotations', 'next_id', 'progress', 'sessions'):
            if key in data:
                self._data[key] = data[key]
        return True

    # ------------------------------------------------------------------
    # Annotations
    # ------------------------------------------------------------------

    def all_annotations(self) -> List[Annotation]:
        """All annotations ordered by unit, start line and start word."""
        annotations = []
        for record in self._data['annotations']:
            try:
                annotations.append(Annotation.from_dict(record))
            except (KeyError, TypeError) as e:
                logger.warning("Skipping malformed annotation record %r: %s", record, e)
        annotations.sort(key=Annotation.sort_key)
        return annotations

    def annotations_for_unit(self, unit_index: int) -> List[Annotation]:
        return [ann for ann in self.all_annotations() if ann.unit_index == unit_index]

    def add_annotation(self, annotation: Annotation) -> Annotation:
        """
        Persist a new annotation, assigning it an id.

        Args:
            annotation: Annotation to add

        Returns:
            The annotation with its id set
        """
        annotation.id = self._data['next_id']
        self._data['next_id'] += 1
        self._data['annotations'].append(annotation.to_dict())
        self.save_to_json()
        return annotation

    def delete_annotation(self, annotation_id: int) -> bool:
        """
        Remove an annotation by id.

        Returns:
            True if the annotation was found and removed
        """
        records = self._data['annotations']
        kept = [record for record in records if record.get('id') != annotation_id]
        if len(kept) == len(records):
            return False
        self._data['annotations'] = kept
        self.save_to_json()
        return True

    # ------------------------------------------------------------------
    # Progress and sessions
    # ------------------------------------------------------------------

    def load_progress(self) -> Optional[ReadingProgress]:
        progress = self._data.get('progress')
        if not progress:
            return None
        return ReadingProgress(
            unit_index=int(progress.get('unit_index', 0)),
            line=int(progress.get('line', 0)),
            words_read=int(progress.get('words_read', 0)),
        )

    def save_progress(self, progress: ReadingProgress) -> bool:
        self._data['progress'] = {
            'unit_index': progress.unit_index,
            'line': progress.line,
            'words_read': progress.words_read,
        }
        return self.save_to_json()

    def log_session_words(self, words: int, day: Optional[date] = None) -> bool:
        """
        Add words read to a day's reading session.

        Args:
            words: Words read since the last log
            day: Session day, today by default
        """
        if words <= 0:
            return False
        key = (day or date.today()).isoformat()
        sessions: Dict[str, int] = self._data['sessions']
        sessions[key] = sessions.get(key, 0) + words
        return self.save_to_json()

    def session_words(self, day: Optional[date] = None) -> int:
        key = (day or date.today()).isoformat()
        return self._data['sessions'].get(key, 0)
