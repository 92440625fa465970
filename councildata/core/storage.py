"""Durable key-value storage backends for the cache snapshot."""

from __future__ import annotations

import asyncio
import hashlib
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol

from councildata.core.errors import PersistenceError


class KeyValueStorage(Protocol):
    async def get_item(self, key: str) -> Optional[str]: ...

    async def set_item(self, key: str, value: str) -> None: ...

    async def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """In-process storage, used for ephemeral runs and tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.items: Dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    async def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class JsonFileStorage:
    """Stores each key as one file under ``base_dir``, written atomically."""

    def __init__(self, base_dir: Path | str = Path("data/cache")) -> None:
        self.base_dir = Path(base_dir)

    def path_for(self, key: str) -> Path:
        safe = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in key).strip("_") or "item"
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:8]
        return self.base_dir / f"{safe}-{digest}.json"

    async def get_item(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, key)

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def remove_item(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)

    # ------------------------------------------------------------------
    def _read(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Failed to read {path}", key=key, operation="read") from exc

    def _write(self, key: str, value: str) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        target = self.path_for(key)

        fd, tmp_path = tempfile.mkstemp(prefix="cache_", suffix=".json", dir=self.base_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                tmp_file.write(value)
            os.replace(tmp_path, target)
        except OSError as exc:
            raise PersistenceError(f"Failed to write {target}", key=key, operation="write") from exc
        finally:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def _remove(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Failed to remove {path}", key=key, operation="remove") from exc


__all__ = ["KeyValueStorage", "MemoryStorage", "JsonFileStorage"]
