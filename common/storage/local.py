"""Key-value backends for on-device storage.

FileBackend keeps one file per key inside a directory and is what the
tracker uses when nobody is signed in. MemoryBackend is a plain dict for
tests and throwaway sessions.
"""
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from .backend import KeyValueBackend

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileBackend(KeyValueBackend):
    """Directory-backed storage: ``<base_dir>/<key>.json``.

    Writes go to a temp file in the same directory and are moved into place
    with os.replace, so a crash never leaves a half-written value behind.
    """

    suffix = ".json"

    def __init__(self, base_dir: str):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _resolve(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.base_dir / f"{key}{self.suffix}"

    def get(self, key: str) -> Optional[str]:
        path = self._resolve(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._resolve(key)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.base_dir), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, path)
        except Exception:
            Path(tmp_path).unlink(missing_ok=True)
            raise
        logger.debug(f"FileBackend: wrote {key} ({len(value)} chars)")

    def remove(self, key: str) -> bool:
        path = self._resolve(key)
        if path.exists():
            path.unlink()
            return True
        return False

    def keys(self, prefix: str = '') -> List[str]:
        return sorted(
            p.name[: -len(self.suffix)]
            for p in self.base_dir.iterdir()
            if p.is_file() and p.name.endswith(self.suffix) and p.name.startswith(prefix)
        )


class MemoryBackend(KeyValueBackend):
    """In-process storage, lost when the object goes away."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self, prefix: str = '') -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))
