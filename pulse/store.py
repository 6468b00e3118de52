# pulse/store.py
import json
from pathlib import Path
from typing import Optional


class MemoryStore:
    """Plain dict store. Used by tests and for throwaway sessions."""

    def __init__(self, initial: Optional[dict] = None):
        self._data = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value) -> None:
        self._data[key] = str(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict:
        return dict(self._data)


class JsonFileStore:
    """
    String key/value pairs kept in one JSON file, rewritten on every set.
    A missing or unreadable file reads as empty.
    """

    def __init__(self, path):
        self.path = Path(path)

    def _load(self) -> dict:
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError):
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, obj: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(obj))

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value) -> None:
        data = self._load()
        data[key] = str(value)
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def snapshot(self) -> dict:
        return self._load()
