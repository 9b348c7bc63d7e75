"""
In-memory source of truth for the entry collection.

- Mutations: ``replace_all`` (after a successful remote fetch) and ``append``
  (after a local submission). Neither validates nor deduplicates records.
- Every mutation re-persists the full collection to the LocalCache and then
  notifies subscribers before returning.
- Persistence failures are logged, never raised; the in-memory collection stays
  authoritative for the session.
- Thread-safety: mutations and reads take an internal re-entrant lock; readers
  receive tuples (read-only views).
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from survey.cache import LocalCache
from survey.errors import PersistenceError
from survey.models import Entry


logger = logging.getLogger(__name__)

Listener = Callable[[Tuple[Any, ...]], None]


class EntryStore:
    def __init__(self, cache: Optional[LocalCache] = None, entries: Optional[Sequence[Any]] = None) -> None:
        self._lock = threading.RLock()
        self._cache = cache
        self._entries: List[Any] = list(entries or [])
        self._listeners: List[Listener] = []

    @classmethod
    def from_cache(cls, cache: LocalCache) -> "EntryStore":
        entries = cache.load()
        logger.info("Seeded store with %d cached entries", len(entries))
        return cls(cache=cache, entries=entries)

    # -------- Queries --------

    def current(self) -> Tuple[Any, ...]:
        with self._lock:
            return tuple(self._entries)

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

    # -------- Mutations --------

    def replace_all(self, entries: Sequence[Any]) -> None:
        if not isinstance(entries, (list, tuple)):
            raise TypeError(f"expected a list of entries, got {type(entries).__name__}")
        with self._lock:
            self._entries = list(entries)
            self._after_mutation()

    def append(self, entry: Union[Entry, Dict[str, Any]]) -> None:
        record = entry.to_record() if isinstance(entry, Entry) else entry
        with self._lock:
            self._entries.append(record)
            self._after_mutation()

    # -------- Change notification --------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _after_mutation(self) -> None:
        view = tuple(self._entries)
        if self._cache is not None:
            try:
                self._cache.save(view)
            except PersistenceError as exc:
                logger.warning("Local cache not updated (%d entries kept in memory): %s", len(view), exc)
        for listener in list(self._listeners):
            try:
                listener(view)
            except Exception:
                logger.exception("Store listener %r failed", listener)
