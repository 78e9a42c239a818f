"""Local key-value blob store.

Each key is one JSON document under ``data_dir`` (``<key>.json``).
Writes go to a temp file that is fsynced and then moved over the
target with ``os.replace``, so a crash mid-write leaves the previous
version intact. Saves are full overwrites, never appends.
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

from wager_tracker.core.errors import PersistenceError, StoreLoadError

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class LocalStore:
    """JSON-file backed key-value store.

    Args:
        data_dir: Directory holding one ``<key>.json`` file per key.
    """

    def __init__(self, data_dir: str | Path) -> None:
        self._dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._dir

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise PersistenceError(f"Invalid store key: {key!r}")
        return self._dir / f"{key}.json"

    def get(self, key: str) -> Any | None:
        """Return the stored document, or None when the key was never set.

        Raises:
            StoreLoadError: the file exists but cannot be read or decoded.
        """
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreLoadError(f"Cannot read {path}: {exc}") from exc

    def put(self, key: str, value: Any) -> None:
        """Atomically replace the document stored under *key*."""
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(value, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Cannot write {path}: {exc}") from exc
        logger.debug("Stored %s (%s)", key, path)

    def delete(self, key: str) -> None:
        """Remove *key*; a missing key is not an error."""
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Cannot delete {path}: {exc}") from exc
