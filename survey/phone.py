from __future__ import annotations

import re
from typing import Optional

from survey.config import PhonePrefixes


_SEPARATORS = re.compile(r"[-\s+]")


def normalize_phone(raw: Optional[str], prefixes: PhonePrefixes = PhonePrefixes()) -> str:
    """Canonical form of a phone number, used only for equality checks.

    Separators (whitespace, ``-``, ``+``) are removed, then at most one prefix is
    stripped: the country code, else the trunk prefix, else one leading zero.
    """
    if not raw:
        return ""
    s = _SEPARATORS.sub("", str(raw))
    for prefix in (prefixes.country_code, prefixes.trunk, prefixes.leading):
        if prefix and s.startswith(prefix):
            return s[len(prefix):]
    return s
