"""Durable local copy of the entry collection.

One JSON array per cache key, stored as ``<cache_dir>/<key>.json``. Loading
never fails (missing or unreadable content gives an empty list); saving fully
overwrites the previous content and raises ``PersistenceError`` on failure.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, List, Sequence

from survey.errors import PersistenceError


logger = logging.getLogger(__name__)


class LocalCache:
    def __init__(self, cache_dir: Path, key: str) -> None:
        self.cache_dir = Path(cache_dir)
        self.key = key

    @property
    def path(self) -> Path:
        safe_key = "".join(c if c.isalnum() or c in "._-" else "_" for c in self.key)
        return self.cache_dir / f"{safe_key}.json"

    def load(self) -> List[Any]:
        path = self.path
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable cache %s: %s", path, exc)
            return []
        if not isinstance(data, list):
            logger.warning("Ignoring cache %s: expected a JSON array, got %s", path, type(data).__name__)
            return []
        return data

    def save(self, entries: Sequence[Any]) -> None:
        path = self.path
        try:
            payload = json.dumps(list(entries), ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"entries are not JSON-serializable: {exc}") from exc
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=path.stem, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise PersistenceError(f"could not write {path}: {exc}") from exc

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
