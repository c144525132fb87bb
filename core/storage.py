"""
Key-value stores backing device persistence.

The simulator only needs an opaque get/set of string values; the stores
here provide an in-memory one and a JSON file one.
"""

import json
import logging
import os
import threading
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Minimal string key-value store interface."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str):
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """Store kept in process memory."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str):
        self._data[key] = value


class JSONFileStore(KeyValueStore):
    """
    Store persisted as a single JSON object in a file.

    The whole file is rewritten on each set. A missing file reads as an
    empty store; an unreadable one raises from get().
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Store file {self.path} does not hold an object")
        return data

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read_all().get(key)

    def set(self, key: str, value: str):
        with self._lock:
            try:
                data = self._read_all()
            except ValueError:
                # Corrupt file is replaced rather than merged
                logger.warning("Overwriting unreadable store file %s", self.path)
                data = {}

            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            data[key] = value
            tmp_path = self.path + ".tmp"
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
