"""
Reader settings loaded from and saved to a JSON file.
"""
import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

from quire.utils import get_app_data_dir

logger = logging.getLogger(__name__)

SETTINGS_FILE_NAME = "settings.json"

MARGIN_RANGE = (0, 20)
LINE_SPACING_RANGE = (0, 5)


@dataclass
class ReaderConfig:
    """User-tunable reader settings."""

    margin: int = 2
    line_spacing: int = 0
    text_width: int = 120  # Column width for reflowed text
    raster_dpi: int = 150  # Resolution for scanned PDF pages
    daily_goal_words: int = 1500
    auto_resume: bool = True
    data_dir: Optional[str] = None  # Defaults to the app data directory

    def resolve_data_dir(self) -> Path:
        """Directory holding annotations, progress and settings."""
        if self.data_dir:
            path = Path(self.data_dir).expanduser()
            path.mkdir(parents=True, exist_ok=True)
            return path
        return get_app_data_dir()

    @classmethod
    def from_dict(cls, data: dict) -> "ReaderConfig":
        """
        Build a config from a dictionary, ignoring unknown keys.

        Values whose type does not match the default are logged and
        replaced by the default.
        """
        config = cls()
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            default = getattr(config, f.name)
            if default is not None and (
                not isinstance(value, type(default))
                or (isinstance(value, bool) and not isinstance(default, bool))
            ):
                logger.warning(
                    "Ignoring setting %s=%r (expected %s)",
                    f.name, value, type(default).__name__,
                )
                continue
            setattr(config, f.name, value)

        config.margin = _clamp(config.margin, *MARGIN_RANGE)
        config.line_spacing = _clamp(config.line_spacing, *LINE_SPACING_RANGE)
        if config.text_width < 20:
            config.text_width = 20
        return config

    def to_dict(self) -> dict:
        return asdict(self)

    def save(self, file_path: Optional[str] = None) -> bool:
        """
        Save settings as indented JSON.

        Args:
            file_path: Optional custom path for the settings file

        Returns:
            True if save was successful
        """
        if file_path is None:
            file_path = str(self.resolve_data_dir() / SETTINGS_FILE_NAME)
        try:
            os.makedirs(os.path.dirname(file_path) or ".", exist_ok=True)
            with open(file_path, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2)
            return True
        except OSError as e:
            logger.error("Failed to save settings to %s: %s", file_path, e)
            return False


def load_config(file_path: Optional[str] = None) -> ReaderConfig:
    """
    Load reader settings.

    Args:
        file_path: Optional custom path; defaults to settings.json in the
            app data directory

    Returns:
        The loaded config, or defaults when the file is missing or broken
    """
    if file_path is None:
        file_path = str(get_app_data_dir() / SETTINGS_FILE_NAME)

    if not os.path.exists(file_path):
        return ReaderConfig()

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Failed to read settings from %s: %s", file_path, e)
        return ReaderConfig()

    if not isinstance(data, dict):
        logger.warning("Settings file %s does not hold an object", file_path)
        return ReaderConfig()

    return ReaderConfig.from_dict(data)


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))
