"""Key-value stores for persisting core state."""

import base64
import json
import os
from pathlib import Path
from typing import Dict, Optional

from ..logger import get_logger
from .interfaces import IKeyValueStore

logger = get_logger(__name__)


class MemoryStore(IKeyValueStore):
    """In-process store, handy for tests and hosts without persistence."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._values: Dict[str, bytes] = dict(initial or {})

    def load(self, key: str) -> Optional[bytes]:
        return self._values.get(key)

    def save(self, key: str, value: bytes) -> None:
        self._values[key] = bytes(value)

    def __contains__(self, key: str) -> bool:
        return key in self._values


class JsonFileStore(IKeyValueStore):
    """Store backed by a single JSON file of base64-encoded values."""

    def __init__(self, path: Optional[str] = None):
        if path is None:
            home = os.path.expanduser("~")
            path = os.path.join(home, ".config", "violin_tutor", "storage.json")
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Error reading store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Ignoring malformed store {self.path}")
            return {}
        return data

    def load(self, key: str) -> Optional[bytes]:
        encoded = self._read_all().get(key)
        if encoded is None:
            return None
        try:
            return base64.b64decode(encoded)
        except ValueError as e:
            logger.warning(f"Corrupt value for '{key}' in {self.path}: {e}")
            return None

    def save(self, key: str, value: bytes) -> None:
        data = self._read_all()
        data[key] = base64.b64encode(value).decode("ascii")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)
        logger.debug(f"Saved '{key}' to {self.path}")
