"""Spreadsheet (xlsx) reports built from the entry collection.

- overall report: one sheet per profession with entries, a summary sheet and an
  all-data sheet
- all-entries report: a single sheet with every entry
- profession report: a single sheet for one profession
"""

from __future__ import annotations

import io
import re
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd
from openpyxl.utils import get_column_letter

from survey.aggregate import aggregate
from survey.config import SurveyConfig
from survey.errors import NoDataError


SUMMARY_SHEET = "সামগ্রিক রিপোর্ট"
ALL_DATA_SHEET = "সকল ডেটা"
ALL_ENTRIES_SHEET = "সকল এন্ট্রি"

ENTRY_HEADERS = ["ক্রমিক", "নাম", "ফোন নম্বর", "পেশা", "MyGP ব্যবহার", "কারণ", "তারিখ"]
PROFESSION_ENTRY_HEADERS = ["ক্রমিক", "নাম", "ফোন নম্বর", "MyGP ব্যবহার", "কারণ", "তারিখ"]
SUMMARY_HEADERS = ["পেশা", "মোট সার্ভে", "MyGP ব্যবহারকারী", "এড দেখেন", "এমবি চেক করেন", "ব্যবহারের হার"]

ALL_ENTRIES_WIDTHS = [10, 20, 15, 15, 15, 35, 15]
PROFESSION_REPORT_WIDTHS = [10, 20, 15, 15, 35, 15]
OVERALL_ALL_DATA_WIDTHS = [8, 20, 15, 15, 15, 30, 15]
OVERALL_PROFESSION_WIDTHS = [8, 20, 15, 15, 30, 15]
SUMMARY_WIDTHS = [20, 15, 20, 15, 20, 15]

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_BN_DIGITS = str.maketrans("0123456789", "০১২৩৪৫৬৭৮৯")
_BAD_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")


def format_date_bn(value: object) -> str:
    """``d/m/yyyy`` with Bengali digits; ``-`` when the value is not a date."""
    if value is None or value == "":
        return "-"
    ts = pd.to_datetime(value, errors="coerce", utc=True)
    if pd.isna(ts):
        return "-"
    return f"{ts.day}/{ts.month}/{ts.year}".translate(_BN_DIGITS)


def _sheet_name(name: str) -> str:
    return _BAD_SHEET_CHARS.sub("_", name)[:31] or "Sheet"


def _records(collection: Iterable[Any]) -> List[Mapping[str, Any]]:
    return [r for r in collection if isinstance(r, Mapping)]


def _entry_rows(records: Sequence[Mapping[str, Any]], *, include_profession: bool) -> pd.DataFrame:
    rows = []
    for idx, d in enumerate(records, start=1):
        row = [idx, d.get("name") or "-", d.get("phoneNumber") or "-"]
        if include_profession:
            row.append(d.get("profession") or "-")
        row += [
            "হ্যাঁ" if d.get("useMyGP") == "yes" else "না",
            d.get("reason") or "-",
            format_date_bn(d.get("timestamp")),
        ]
        rows.append(row)
    headers = ENTRY_HEADERS if include_profession else PROFESSION_ENTRY_HEADERS
    return pd.DataFrame(rows, columns=headers)


def _write_sheet(writer: pd.ExcelWriter, df: pd.DataFrame, name: str, widths: Sequence[int], *, header: bool = True) -> None:
    sheet = _sheet_name(name)
    df.to_excel(writer, sheet_name=sheet, index=False, header=header)
    ws = writer.sheets[sheet]
    for idx, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = width


def _summary_frame(collection: Sequence[Any], config: SurveyConfig, today: date) -> pd.DataFrame:
    snapshot = aggregate(collection, config.professions, config.reasons)
    blank = [""] * 6
    rows: List[List[Any]] = [
        ["MyGP সার্ভে সামগ্রিক রিপোর্ট", "", "", "", "", ""],
        ["রিপোর্ট তারিখ:", format_date_bn(today.isoformat()), "", "", "", ""],
        ["মোট সার্ভে:", snapshot.total, "", "", "", ""],
        blank,
        SUMMARY_HEADERS,
    ]
    for profession, stats in snapshot.by_profession.items():
        rows.append([
            profession,
            stats.total,
            stats.adopters,
            stats.reason_counts["social_ad"],
            stats.reason_counts["mb_data"],
            f"{stats.adoption_rate}%",
        ])
    rows.append(blank)
    rows.append([
        "সর্বমোট",
        snapshot.total,
        snapshot.adopters,
        snapshot.reason_counts["social_ad"],
        snapshot.reason_counts["mb_data"],
        f"{snapshot.adoption_rate}%",
    ])
    return pd.DataFrame(rows)


def _workbook_bytes(sheets: Iterable[tuple]) -> bytes:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for df, name, widths, header in sheets:
            _write_sheet(writer, df, name, widths, header=header)
    return buf.getvalue()


def build_overall_report(collection: Iterable[Any], config: SurveyConfig, *, today: Optional[date] = None) -> bytes:
    entries = list(collection)
    if not entries:
        raise NoDataError("no entries to export")
    today = today or date.today()
    records = _records(entries)

    sheets = []
    for profession in config.professions:
        prof_records = [r for r in records if r.get("profession") == profession]
        if prof_records:
            sheets.append((_entry_rows(prof_records, include_profession=False), profession, OVERALL_PROFESSION_WIDTHS, True))
    sheets.append((_summary_frame(entries, config, today), SUMMARY_SHEET, SUMMARY_WIDTHS, False))
    sheets.append((_entry_rows(records, include_profession=True), ALL_DATA_SHEET, OVERALL_ALL_DATA_WIDTHS, True))
    return _workbook_bytes(sheets)


def build_all_entries_report(collection: Iterable[Any]) -> bytes:
    records = _records(collection)
    if not records:
        raise NoDataError("no entries to export")
    return _workbook_bytes([(_entry_rows(records, include_profession=True), ALL_ENTRIES_SHEET, ALL_ENTRIES_WIDTHS, True)])


def build_profession_report(collection: Iterable[Any], profession: str) -> bytes:
    records = [r for r in _records(collection) if r.get("profession") == profession]
    if not records:
        raise NoDataError(f"no entries for profession {profession!r}")
    return _workbook_bytes([(_entry_rows(records, include_profession=False), profession, PROFESSION_REPORT_WIDTHS, True)])


def report_filename(kind: str, *, today: Optional[date] = None, profession: Optional[str] = None) -> str:
    stamp = (today or date.today()).isoformat()
    names: Dict[str, str] = {
        "overall": f"MyGP_Survey_Overall_Report_{stamp}.xlsx",
        "all-entries": f"All_Entries_Report_{stamp}.xlsx",
        "profession": f"{profession}_Report_{stamp}.xlsx",
    }
    if kind not in names:
        raise ValueError(f"unknown report kind: {kind!r}")
    return names[kind]
