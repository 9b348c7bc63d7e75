from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from survey.config import SurveyConfig
from survey.errors import InvalidEntryError


ENTRY_FIELDS = ("id", "name", "phoneNumber", "profession", "useMyGP", "reason", "timestamp")
USE_MYGP_VALUES = ("yes", "no")


@dataclass(frozen=True)
class Entry:
    """One survey response. Immutable once created."""

    id: int
    phone_number: str
    profession: str
    use_mygp: str
    reason: str = ""
    name: str = ""
    timestamp: str = ""

    @property
    def is_adopter(self) -> bool:
        return self.use_mygp == "yes"

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "phoneNumber": self.phone_number,
            "profession": self.profession,
            "useMyGP": self.use_mygp,
            "reason": self.reason,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Entry":
        try:
            entry_id = int(record.get("id") or 0)
        except (TypeError, ValueError):
            entry_id = 0
        return cls(
            id=entry_id,
            name=str(record.get("name") or ""),
            phone_number=str(record.get("phoneNumber") or ""),
            profession=str(record.get("profession") or ""),
            use_mygp=str(record.get("useMyGP") or ""),
            reason=str(record.get("reason") or ""),
            timestamp=str(record.get("timestamp") or ""),
        )


def form_fields(record: Mapping[str, Any]) -> Dict[str, str]:
    """Flatten a record into the key/value pairs posted to the remote endpoint."""
    out: Dict[str, str] = {}
    for key in ENTRY_FIELDS:
        value = record.get(key)
        out[key] = "" if value is None else str(value)
    return out


def utc_timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class EntryIdGenerator:
    """Millisecond timestamps, bumped when two entries land in the same millisecond."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            candidate = int(self._clock() * 1000)
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return candidate


_default_ids = EntryIdGenerator()


def new_entry(
    form: Mapping[str, Any],
    config: SurveyConfig,
    *,
    next_id: Optional[Callable[[], int]] = None,
    now: Optional[datetime] = None,
) -> Entry:
    """Validate submitted form fields and build a new Entry.

    ``reason`` is cleared for non-adopters and required for adopters.
    """
    phone = str(form.get("phoneNumber") or "").strip()
    if not phone:
        raise InvalidEntryError("phone number is required")

    profession = str(form.get("profession") or "").strip()
    if profession not in config.professions:
        raise InvalidEntryError(f"unknown profession: {profession!r}")

    use_mygp = str(form.get("useMyGP") or "").strip().lower()
    if use_mygp not in USE_MYGP_VALUES:
        raise InvalidEntryError(f"useMyGP must be 'yes' or 'no', got {use_mygp!r}")

    reason = str(form.get("reason") or "").strip()
    if use_mygp == "no":
        reason = ""
    elif not reason:
        raise InvalidEntryError("reason is required when useMyGP is 'yes'")
    elif reason not in config.reasons.values():
        raise InvalidEntryError(f"unknown reason: {reason!r}")

    return Entry(
        id=(next_id or _default_ids)(),
        name=str(form.get("name") or "").strip(),
        phone_number=phone,
        profession=profession,
        use_mygp=use_mygp,
        reason=reason,
        timestamp=utc_timestamp(now),
    )
