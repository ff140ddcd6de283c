#!/usr/bin/env python3
"""
Key-value persistence for the template collection.

JsonFileStorage keeps one JSON file per key under the workspace directory;
MemoryStorage is the in-process equivalent used for tests and one-off runs.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from ..config import config
from ..diagnostics import get_logger
from ..exceptions import StorageUnavailable

logger = get_logger(__name__)


class KeyValueStorage(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Stored value for key, or None when nothing was stored yet."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...


class MemoryStorage(KeyValueStorage):
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        # kept serialized; get() always returns a fresh copy
        try:
            self._data[key] = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageUnavailable(f"Value for {key!r} is not JSON serializable: {e}") from e


def _ensure_base(base: Optional[Path] = None) -> Path:
    base = Path(base) if base is not None else Path(config.workspace_dir) / "storage"
    candidates = [
        base,
        Path(os.path.expanduser("~")) / ".cache" / "pagecraft" / "storage",
        Path(tempfile.gettempdir()) / "pagecraft" / "storage",
    ]
    for cand in candidates:
        try:
            cand.mkdir(parents=True, exist_ok=True)
            test = cand / ".writetest"
            with open(test, "w") as f:
                f.write("ok")
            test.unlink()
            if cand != base:
                logger.warning(f"Storage directory {base} not writable, using {cand}")
            return cand
        except OSError:
            continue
    raise StorageUnavailable(f"No writable storage directory (tried {', '.join(str(c) for c in candidates)})")


def _sanitize_key(key: str) -> str:
    key = (key or "").strip()
    if not key:
        raise StorageUnavailable("Storage key must not be empty")
    return "".join(ch if ch.isalnum() or ch in ("-", "_", ".") else "_" for ch in key)


class JsonFileStorage(KeyValueStorage):
    """One `<key>.json` file per key. Writes replace the file atomically."""

    def __init__(self, base_dir: Optional[Path] = None, fallback: bool = True):
        if fallback:
            self.base_dir = _ensure_base(base_dir)
        else:
            self.base_dir = Path(base_dir) if base_dir is not None else Path(config.workspace_dir) / "storage"

    def path_for(self, key: str) -> Path:
        return self.base_dir / f"{_sanitize_key(key)}.json"

    def get(self, key: str) -> Optional[Any]:
        p = self.path_for(key)
        try:
            with open(p, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read {p}: {e}")
            raise StorageUnavailable(f"Cannot read {p}: {e}") from e

    def set(self, key: str, value: Any) -> None:
        p = self.path_for(key)
        tmp = p.with_name(p.name + ".tmp")
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(value, f, ensure_ascii=False, indent=2)
            os.replace(tmp, p)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write {p}: {e}")
            try:
                tmp.unlink()
            except OSError:
                pass
            raise StorageUnavailable(f"Cannot write {p}: {e}") from e
