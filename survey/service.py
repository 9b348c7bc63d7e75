"""Submission and refresh flows shared by the API and the Streamlit app.

All I/O errors are caught here, at the boundary of the user-facing operation,
and converted into an ``Outcome``. ``Outcome.notify`` says whether the UI should
show the message: background refreshes stay silent, duplicates and invalid
input always surface, a failed remote write after a local save is a warning.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import requests

from survey.aggregate import AggregateSnapshot, aggregate
from survey.cache import LocalCache
from survey.charts import compute_charts
from survey.config import MESSAGES, SurveyConfig
from survey.dedup import is_duplicate
from survey.errors import (
    DuplicateEntryError,
    InvalidEntryError,
    MalformedResponseError,
    PartialSubmitError,
    RemoteError,
    ServerReportedError,
    SurveyError,
    TransportError,
)
from survey.models import new_entry
from survey.refresh import AutoRefresh
from survey.remote import RemoteSync
from survey.store import EntryStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome:
    ok: bool
    level: str  # "success" | "info" | "warning" | "error"
    message: str = ""
    error: Optional[SurveyError] = None
    notify: bool = True
    entry: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "level": self.level,
            "message": self.message,
            "notify": self.notify,
            "error": type(self.error).__name__ if self.error is not None else None,
            "entry": self.entry,
        }


def _fetch_failure_message(exc: RemoteError) -> Tuple[str, str]:
    if isinstance(exc, ServerReportedError):
        return "error", f"{MESSAGES['server_error']}: {exc.server_message}"
    if isinstance(exc, TransportError):
        if exc.status_code is not None:
            return "error", MESSAGES["server_status"].format(status=exc.status_code)
        return "warning", MESSAGES["network"]
    if isinstance(exc, MalformedResponseError) and isinstance(exc.__cause__, ValueError):
        return "error", MESSAGES["invalid_json"]
    return "warning", MESSAGES["invalid_format"]


def _submit_failure_message(exc: RemoteError) -> str:
    if isinstance(exc, ServerReportedError) and exc.server_message:
        return f"{MESSAGES['submit_partial']}: {exc.server_message}"
    if isinstance(exc, TransportError) and exc.status_code is None:
        return MESSAGES["submit_offline"]
    return MESSAGES["submit_partial"]


class SurveyService:
    def __init__(
        self,
        config: SurveyConfig,
        store: EntryStore,
        remote: RemoteSync,
        *,
        next_id: Optional[Callable[[], int]] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.remote = remote
        self._next_id = next_id
        self._mutation_lock = threading.Lock()
        self._snapshot = aggregate(store.current(), config.professions, config.reasons)
        self._refresher: Optional[AutoRefresh] = None
        store.subscribe(self._recompute)

    @classmethod
    def from_config(cls, config: SurveyConfig, *, session: Optional[requests.Session] = None) -> "SurveyService":
        store = EntryStore.from_cache(LocalCache(config.cache_dir, config.cache_key))
        remote = RemoteSync(config.endpoint_url, session=session, timeout=config.request_timeout)
        return cls(config, store, remote)

    # -------- Read-only queries --------

    def current(self) -> Tuple[Any, ...]:
        return self.store.current()

    def snapshot(self) -> AggregateSnapshot:
        return self._snapshot

    def charts(self) -> Dict[str, Any]:
        return compute_charts(self.store.current(), self.config)

    def is_duplicate(self, phone_number: str) -> bool:
        return is_duplicate(phone_number, self.store.current(), self.config.phone)

    def _recompute(self, entries: Tuple[Any, ...]) -> None:
        self._snapshot = aggregate(entries, self.config.professions, self.config.reasons)

    # -------- Flows --------

    def refresh(self, *, user_initiated: bool = False) -> Outcome:
        """Replace the local collection with the remote snapshot (last fetch wins)."""
        try:
            data = self.remote.fetch_all()
        except RemoteError as exc:
            level, message = _fetch_failure_message(exc)
            logger.warning("Refresh failed (%s): %s", type(exc).__name__, exc)
            return Outcome(ok=False, level=level, message=message, error=exc, notify=user_initiated)

        # Serialized with submit so a snapshot never lands between its duplicate check and append.
        with self._mutation_lock:
            old_count = self.store.count()
            self.store.replace_all(data)
        added = len(data) - old_count
        logger.info("Entries loaded: previous=%d current=%d new=%d", old_count, len(data), added)
        if added > 0:
            message = MESSAGES["loaded_new"].format(count=len(data), new=added)
        else:
            message = MESSAGES["loaded"].format(count=len(data))
        return Outcome(ok=True, level="success", message=message, notify=user_initiated)

    def submit(self, form: Mapping[str, Any]) -> Outcome:
        """Gate on duplicates, store locally, then push the entry to the remote sheet."""
        phone = str(form.get("phoneNumber") or "").strip()
        with self._mutation_lock:
            if is_duplicate(phone, self.store.current(), self.config.phone):
                logger.info("Rejected duplicate phone number %s", phone)
                return Outcome(
                    ok=False,
                    level="error",
                    message=MESSAGES["duplicate_phone"],
                    error=DuplicateEntryError(phone),
                )
            try:
                entry = new_entry(form, self.config, next_id=self._next_id)
            except InvalidEntryError as exc:
                return Outcome(ok=False, level="error", message=f"{MESSAGES['invalid_entry']}: {exc}", error=exc)
            self.store.append(entry)

        record = entry.to_record()
        try:
            self.remote.submit(record)
        except RemoteError as exc:
            logger.warning("Entry %s kept locally; remote write failed: %s", entry.id, exc)
            return Outcome(
                ok=True,
                level="warning",
                message=_submit_failure_message(exc),
                error=PartialSubmitError(exc),
                entry=record,
            )
        return Outcome(ok=True, level="success", message=MESSAGES["submit_success"], entry=record)

    # -------- Auto-refresh --------

    def start_auto_refresh(self, *, immediate: bool = True) -> AutoRefresh:
        if self._refresher is None:
            self._refresher = AutoRefresh(lambda: self.refresh(user_initiated=False), self.config.auto_refresh_interval)
        self._refresher.start(immediate=immediate)
        return self._refresher

    def stop_auto_refresh(self) -> None:
        if self._refresher is not None:
            self._refresher.stop()

    def close(self) -> None:
        self.stop_auto_refresh()
        self.remote.close()
