"""JSON file store for the site's collections.

Handles:
- Creating the data and uploads directories
- Loading a collection with a fallback when the file is missing or broken
- Atomic writes (temp file + rename) so a crash never leaves half a file
"""
import json
import os
from pathlib import Path
from typing import Any

from dunesea import config
from dunesea.logging_config import get_logger

logger = get_logger(__name__)


class JsonStore:
    """Reads and writes one JSON document per collection under data_dir."""

    def __init__(self, data_dir: Path):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding the JSON files. Created if missing,
                      along with its uploads/ subdirectory.
        """
        self.data_dir = Path(data_dir)
        self.uploads_dir = self.data_dir / config.UPLOADS_DIRNAME
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.uploads_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        return self.data_dir / name

    def load(self, name: str, default: Any) -> Any:
        """
        Load a collection.

        Args:
            name: File name, e.g. "booked.json"
            default: Returned when the file is missing, empty or unreadable

        Returns:
            Parsed JSON document or default
        """
        path = self.path_for(name)
        if not path.exists():
            return default

        try:
            raw = path.read_text(encoding="utf-8")
            if not raw.strip():
                return default
            return json.loads(raw)
        except (OSError, ValueError) as e:
            logger.warning("data.read_failed", path=str(path), error=str(e))
            return default

    def load_list(self, name: str) -> list:
        """Load a collection that must be a JSON array."""
        data = self.load(name, [])
        if not isinstance(data, list):
            logger.warning("data.not_a_list", path=str(self.path_for(name)))
            return []
        return data

    def save(self, name: str, obj: Any) -> bool:
        """
        Write a collection atomically.

        Returns:
            True on success, False if the write failed (already logged)
        """
        path = self.path_for(name)
        tmp = path.with_name(path.name + ".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(obj, f, indent=2, ensure_ascii=False)
            os.replace(tmp, path)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.warning("data.write_failed", path=str(path), error=str(e))
            return False
