"""
Shared fixtures for the survey tests.

Every fixture works on a temporary cache directory and a MagicMock
``requests.Session``; nothing touches the network.
"""

import json
from unittest.mock import MagicMock

import pytest
import requests

from survey.cache import LocalCache
from survey.config import PROFESSIONS, ReasonCategories, normalize_config
from survey.remote import RemoteSync
from survey.service import SurveyService
from survey.store import EntryStore


_REASONS = ReasonCategories()
MB = _REASONS.mb_data
AD = _REASONS.social_ad
BOTH = _REASONS.both
DOCTOR, STUDENT, PASSERBY = PROFESSIONS[0], PROFESSIONS[2], PROFESSIONS[5]


def make_response(payload=None, status_code=200, text=None):
    """Build a fake ``requests.Response``-like object."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 400
    resp.text = text if text is not None else json.dumps(payload, ensure_ascii=False)
    return resp


def make_record(entry_id, phone, profession=STUDENT, use="yes", reason=MB, name=""):
    return {
        "id": entry_id,
        "name": name,
        "phoneNumber": phone,
        "profession": profession,
        "useMyGP": use,
        "reason": reason if use == "yes" else "",
        "timestamp": "2026-10-18T09:30:00.000Z",
    }


@pytest.fixture
def config(tmp_path):
    return normalize_config({"cache_dir": tmp_path / "cache", "auto_refresh_enabled": False})


@pytest.fixture
def cache(config):
    return LocalCache(config.cache_dir, config.cache_key)


@pytest.fixture
def session():
    s = MagicMock(spec=requests.Session)
    s.get.return_value = make_response({"status": "success", "data": []})
    s.post.return_value = make_response({"status": "success"})
    return s


@pytest.fixture
def remote(config, session):
    return RemoteSync(config.endpoint_url, session=session, clock=lambda: 1760779800.0)


@pytest.fixture
def sample_records():
    return [
        make_record(1, "01711000001", DOCTOR, "yes", MB, name="Rahim"),
        make_record(2, "+880 1711-000002", DOCTOR, "yes", AD),
        make_record(3, "8801711000003", STUDENT, "yes", BOTH),
        make_record(4, "01711000004", STUDENT, "no"),
        make_record(5, "1711000005", PASSERBY, "no"),
    ]


@pytest.fixture
def service(config, cache, remote):
    ids = iter(range(1_000, 2_000))
    return SurveyService(config, EntryStore(cache=cache), remote, next_id=lambda: next(ids))
