"""Key/value persistence collaborators for history and bookmarks."""

from pathlib import Path
from typing import Dict, Optional, Protocol
import json


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryKeyValueStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class FileKeyValueStore:
    """Stores string values under keys of one JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        values = self._read_all()
        values[key] = value
        self._path.write_text(json.dumps(values, indent=2, sort_keys=True), encoding="utf-8")

    def _read_all(self) -> Dict[str, object]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (UnicodeDecodeError, ValueError):
            return {}
        return data if isinstance(data, dict) else {}
