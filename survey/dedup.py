from __future__ import annotations

from typing import Any, Iterable, Mapping

from survey.config import PhonePrefixes
from survey.phone import normalize_phone


def is_duplicate(candidate_raw: str, collection: Iterable[Any], prefixes: PhonePrefixes = PhonePrefixes()) -> bool:
    """True if any record in ``collection`` has a phone number normalized-equal to the candidate.

    Records without a phone number are skipped and never match.
    """
    candidate = normalize_phone(candidate_raw, prefixes)
    if not candidate:
        return False
    for record in collection:
        if not isinstance(record, Mapping):
            continue
        phone = record.get("phoneNumber")
        if not phone:
            continue
        if normalize_phone(str(phone), prefixes) == candidate:
            return True
    return False
