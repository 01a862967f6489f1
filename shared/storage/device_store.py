"""
Device-scoped key/value store.

Each logical key is one JSON document at <root>/<key>.json.
Writes are atomic (temp file in the same directory, fsync, replace),
so a reader never observes a half-written value.
"""

from __future__ import annotations

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from shared.logging.logger import get_logger

log = get_logger("shared.device_store")

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class DeviceStore:
    """
    Small JSON key/value store rooted at a directory.

    Missing or unreadable values read back as the caller's default;
    corruption is logged, never raised.
    """

    def __init__(self, root: Path | str):
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid store key: {key!r}")
        return self._root / f"{key}.json"

    # ------------------------------------------------------------------
    # Atomic writer
    # ------------------------------------------------------------------

    def _write_atomic(self, path: Path, payload: Any) -> None:
        serialized = json.dumps(payload, indent=2)
        path.parent.mkdir(parents=True, exist_ok=True)

        with tempfile.NamedTemporaryFile(
            "w", dir=path.parent, delete=False, encoding="utf-8"
        ) as tmp:
            temp_path = Path(tmp.name)
            try:
                tmp.write(serialized)
                tmp.flush()
                os.fsync(tmp.fileno())
            except OSError:
                tmp.close()
                temp_path.unlink(missing_ok=True)
                raise

        try:
            temp_path.replace(path)
        except OSError:
            temp_path.unlink(missing_ok=True)
            raise

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        path = self.path_for(key)
        if not path.exists():
            return default

        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.warning(f"Unreadable value for '{key}', treating as absent: {e}")
            return default

    def set(self, key: str, value: Any) -> None:
        self._write_atomic(self.path_for(key), value)

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)
