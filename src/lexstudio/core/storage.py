from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Protocol

import structlog

logger = structlog.get_logger()

_SAFE_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStorage(Protocol):
    """String key/value storage with localStorage semantics."""

    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class FileStorage:
    """One UTF-8 file per key inside ``root``. No locking: last write wins."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY_RE.match(key):
            raise ValueError(f"invalid storage key: {key!r}")
        return self.root / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            tmp.write_text(value, encoding="utf-8")
            tmp.replace(path)
        finally:
            tmp.unlink(missing_ok=True)
        logger.debug("storage.written", key=key, size=len(value))

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class MemoryStorage:
    def __init__(self, initial: Dict[str, str] | None = None) -> None:
        self.items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)
