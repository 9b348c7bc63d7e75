from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Optional, Tuple

from dotenv import load_dotenv


DATA_DIR = Path(__file__).resolve().parents[1]

DEFAULT_ENDPOINT_URL = (
    "https://script.google.com/macros/s/"
    "AKfycbzVBtlDbLdAmpDpkSary5JSd_ZVuVh30S1OTqRt7duntTGokGMQpVVbMzyj_PD5XJnaCg/exec"
)
DEFAULT_CACHE_DIR = DATA_DIR / ".survey_cache"
DEFAULT_CACHE_KEY = "surveyData"
DEFAULT_REFRESH_INTERVAL = 30.0
DEFAULT_REQUEST_TIMEOUT = 30.0

PROFESSIONS: Tuple[str, ...] = (
    "ডাক্তার",
    "ইঞ্জিনিয়ার",
    "ছাত্র",
    "চাকুরিজীবি",
    "ব্যবসায়ী",
    "পথচারী",
)

PROFESSION_ICONS = {
    "ডাক্তার": "🏥",
    "ইঞ্জিনিয়ার": "⚙️",
    "ছাত্র": "🎓",
    "চাকুরিজীবি": "💼",
    "ব্যবসায়ী": "💲",
    "পথচারী": "🚶",
}

# Slice colors follow PROFESSIONS order; bar colors follow the usage chart labels.
PROFESSION_COLORS = ["#FF6384", "#36A2EB", "#FFCE56", "#4BC0C0", "#9966FF", "#FF9F40"]
USAGE_COLORS = ["rgba(54, 162, 235, 0.8)", "rgba(255, 99, 132, 0.8)", "rgba(255, 206, 86, 0.8)"]

MESSAGES = {
    "submit_success": "সার্ভে সফলভাবে জমা হয়েছে এবং Google Sheets এ সংরক্ষিত হয়েছে!",
    "submit_partial": "সার্ভে জমা হয়েছে, কিন্তু Google Sheets এ সংরক্ষণ করতে সমস্যা হয়েছে",
    "submit_offline": "সার্ভে জমা হয়েছে, কিন্তু ইন্টারনেট সংযোগ সমস্যার কারণে Google Sheets এ সংরক্ষণ করা যায়নি",
    "duplicate_phone": "এই ফোন নম্বরটি ইতিমধ্যে ব্যবহার করা হয়েছে! একই নম্বর দিয়ে দ্বিতীয়বার এন্ট্রি দেওয়া যাবে না।",
    "loaded": "✓ {count} টি এন্ট্রি লোড হয়েছে",
    "loaded_new": "✓ {count} টি এন্ট্রি লোড হয়েছে ({new} টি নতুন)",
    "server_error": "সার্ভার এরর",
    "server_status": "সার্ভার এরর ({status})",
    "invalid_format": "ডেটা ফরম্যাট সঠিক নয়",
    "invalid_json": "সার্ভার থেকে সঠিক JSON ডেটা আসেনি",
    "network": "ইন্টারনেট সংযোগ বা সার্ভার সমস্যা আছে",
    "no_data": "কোন ডেটা নেই",
    "invalid_entry": "ফর্মের তথ্য সঠিক নয়",
}


@dataclass(frozen=True)
class PhonePrefixes:
    country_code: str = "880"
    trunk: str = "88"
    leading: str = "0"


@dataclass(frozen=True)
class ReasonCategories:
    mb_data: str = "মিনিট/ডাটা দেখা বা ক্রয় করার জন্য"
    social_ad: str = "সোশ্যাল এড দেখার জন্য"
    both: str = "উভয়"
    mb_data_markers: Tuple[str, ...] = ("মিনিট", "ডাটা")
    social_ad_markers: Tuple[str, ...] = ("এড",)

    def values(self) -> Tuple[str, str, str]:
        return (self.mb_data, self.social_ad, self.both)


@dataclass(frozen=True)
class SurveyConfig:
    endpoint_url: str = DEFAULT_ENDPOINT_URL
    auto_refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    auto_refresh_enabled: bool = True
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    cache_dir: Path = DEFAULT_CACHE_DIR
    cache_key: str = DEFAULT_CACHE_KEY
    professions: Tuple[str, ...] = PROFESSIONS
    reasons: ReasonCategories = field(default_factory=ReasonCategories)
    phone: PhonePrefixes = field(default_factory=PhonePrefixes)
    phone_input_prefix: str = "88"
    log_level: str = "INFO"


def _as_str_tuple(values: Optional[Iterable[object]]) -> Tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        values = values.split(",")
    return tuple(s for s in (str(v).strip() for v in values if v is not None) if s)


def _as_bool(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _as_positive_float(value: object, default: float) -> float:
    try:
        out = float(value)  # type: ignore[arg-type]
    except Exception:
        return default
    return out if out > 0 else default


def normalize_config(raw: dict) -> SurveyConfig:
    endpoint_url = str(raw.get("endpoint_url") or DEFAULT_ENDPOINT_URL).strip()
    interval = _as_positive_float(raw.get("auto_refresh_interval"), DEFAULT_REFRESH_INTERVAL)
    timeout = _as_positive_float(raw.get("request_timeout"), DEFAULT_REQUEST_TIMEOUT)
    enabled = _as_bool(raw.get("auto_refresh_enabled"), True)

    cache_dir = Path(str(raw.get("cache_dir") or DEFAULT_CACHE_DIR)).expanduser()
    cache_key = str(raw.get("cache_key") or DEFAULT_CACHE_KEY).strip() or DEFAULT_CACHE_KEY

    professions = _as_str_tuple(raw.get("professions")) or PROFESSIONS

    r = raw.get("reasons") or {}
    defaults = ReasonCategories()
    reasons = ReasonCategories(
        mb_data=str(r.get("mb_data") or defaults.mb_data),
        social_ad=str(r.get("social_ad") or defaults.social_ad),
        both=str(r.get("both") or defaults.both),
        mb_data_markers=_as_str_tuple(r.get("mb_data_markers")) or defaults.mb_data_markers,
        social_ad_markers=_as_str_tuple(r.get("social_ad_markers")) or defaults.social_ad_markers,
    )

    p = raw.get("phone") or {}
    phone = PhonePrefixes(
        country_code=str(p.get("country_code", "880")),
        trunk=str(p.get("trunk", "88")),
        leading=str(p.get("leading", "0")),
    )

    return SurveyConfig(
        endpoint_url=endpoint_url,
        auto_refresh_interval=interval,
        auto_refresh_enabled=enabled,
        request_timeout=timeout,
        cache_dir=cache_dir,
        cache_key=cache_key,
        professions=professions,
        reasons=reasons,
        phone=phone,
        phone_input_prefix=str(raw.get("phone_input_prefix", "88")),
        log_level=str(raw.get("log_level") or "INFO").upper(),
    )


def load_config(env: Optional[Mapping[str, str]] = None) -> SurveyConfig:
    """Build the config from ``SURVEY_*`` environment variables (and a ``.env`` file)."""
    if env is None:
        load_dotenv()
        env = os.environ
    raw = {
        "endpoint_url": env.get("SURVEY_ENDPOINT_URL"),
        "auto_refresh_interval": env.get("SURVEY_REFRESH_INTERVAL"),
        "auto_refresh_enabled": env.get("SURVEY_AUTO_REFRESH"),
        "request_timeout": env.get("SURVEY_REQUEST_TIMEOUT"),
        "cache_dir": env.get("SURVEY_CACHE_DIR"),
        "cache_key": env.get("SURVEY_CACHE_KEY"),
        "professions": env.get("SURVEY_PROFESSIONS"),
        "log_level": env.get("SURVEY_LOG_LEVEL"),
    }
    return normalize_config(raw)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    for noisy_logger in ["urllib3", "requests"]:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)
