from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

import pandas as pd

from survey.config import ReasonCategories


REASON_KEYS = ("mb_data", "social_ad", "both")
FRAME_COLUMNS = ["profession", "use_mygp", "reason"]


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def percentage(count: int, base: int) -> int:
    """``round(100 * count / base)`` rounded half up; 0 when ``base`` is 0."""
    if base <= 0:
        return 0
    return int(round_half_up(Decimal(100 * count) / Decimal(base)) or 0)


@dataclass(frozen=True)
class CategoryStats:
    total: int
    adopters: int
    reason_counts: Dict[str, int]
    percentages: Dict[str, int]
    adoption_rate: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AggregateSnapshot(CategoryStats):
    by_profession: Dict[str, CategoryStats] = field(default_factory=dict)


def _text(value: object) -> str:
    return "" if value is None else str(value)


def entries_frame(collection: Iterable[Any]) -> pd.DataFrame:
    """One row per record; records that are not mappings become blank rows."""
    rows = []
    for record in collection:
        if isinstance(record, Mapping):
            rows.append((_text(record.get("profession")), _text(record.get("useMyGP")), _text(record.get("reason"))))
        else:
            rows.append(("", "", ""))
    return pd.DataFrame(rows, columns=FRAME_COLUMNS, dtype="string")


def _contains_any(series: pd.Series, markers: Sequence[str]) -> pd.Series:
    mask = pd.Series(False, index=series.index)
    for marker in markers:
        mask = mask | series.str.contains(marker, regex=False).fillna(False).astype(bool)
    return mask


def _stats(df: pd.DataFrame, reasons: ReasonCategories) -> CategoryStats:
    total = int(len(df))
    adopters = int((df["use_mygp"] == "yes").sum())
    # The compound "both" answer counts toward each single-reason category as well.
    is_both = (df["reason"] == reasons.both).fillna(False).astype(bool)
    mb_data = _contains_any(df["reason"], reasons.mb_data_markers) | is_both
    social_ad = _contains_any(df["reason"], reasons.social_ad_markers) | is_both
    counts = {
        "mb_data": int(mb_data.sum()),
        "social_ad": int(social_ad.sum()),
        "both": int(is_both.sum()),
    }
    return CategoryStats(
        total=total,
        adopters=adopters,
        reason_counts=counts,
        percentages={k: percentage(v, adopters) for k, v in counts.items()},
        adoption_rate=percentage(adopters, total),
    )


def aggregate(
    collection: Iterable[Any],
    professions: Sequence[str],
    reasons: ReasonCategories = ReasonCategories(),
) -> AggregateSnapshot:
    df = entries_frame(collection)
    overall = _stats(df, reasons)
    by_profession = {p: _stats(df[df["profession"] == p], reasons) for p in professions}
    return AggregateSnapshot(
        total=overall.total,
        adopters=overall.adopters,
        reason_counts=overall.reason_counts,
        percentages=overall.percentages,
        adoption_rate=overall.adoption_rate,
        by_profession=by_profession,
    )


def usage_breakdown(collection: Iterable[Any], reasons: ReasonCategories = ReasonCategories()) -> Dict[str, int]:
    """Exact-match counts per reason value; a "both" answer is counted once."""
    reason = entries_frame(collection)["reason"]
    return {
        "mb_data": int((reason == reasons.mb_data).sum()),
        "social_ad": int((reason == reasons.social_ad).sum()),
        "both": int((reason == reasons.both).sum()),
    }


def profession_counts(collection: Iterable[Any], professions: Sequence[str]) -> Dict[str, int]:
    profession = entries_frame(collection)["profession"]
    return {p: int((profession == p).sum()) for p in professions}
