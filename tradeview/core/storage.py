"""Small key/value store persisted to a JSON file.

Values are strings, like browser local storage: callers serialize their own
data (the watchlist stores a JSON array under one key). Every write rewrites
the whole file through a temporary file and `os.replace`, so a crash never
leaves a half-written store behind.
"""
import json
import os
import logging
import threading
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class LocalStorage:
    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, str]:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError):
            logger.warning("Storage file %s is unreadable, treating it as empty", self.path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Storage file %s does not hold an object, treating it as empty", self.path)
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: Dict[str, str]):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)
        os.replace(tmp_path, self.path)

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read_all().get(key)

    def set_item(self, key: str, value: str):
        with self._lock:
            data = self._read_all()
            data[key] = value
            self._write_all(data)
