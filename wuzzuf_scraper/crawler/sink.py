"""
Append-only record sinks.
"""

import json
import logging
import os
import threading
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class JsonlSink:
    """Writes one JSON object per line. Safe to share between worker threads."""

    def __init__(self, path: str):
        self.path = path
        self.count = 0
        self._lock = threading.Lock()
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)

    def push(self, item: Dict[str, Any]):
        line = json.dumps(item, ensure_ascii=False)
        with self._lock:
            with open(self.path, 'a', encoding='utf-8') as f:
                f.write(line + '\n')
            self.count += 1
        logger.debug(f"[sink] Appended record #{self.count} to {self.path}")


class MemorySink:
    """Keeps records in a list."""

    def __init__(self):
        self.items: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def push(self, item: Dict[str, Any]):
        with self._lock:
            self.items.append(item)

    @property
    def count(self) -> int:
        return len(self.items)
