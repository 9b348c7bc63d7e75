"""
Tests for the JSON file cache — survey/cache.py
"""
import json

import pytest

from conftest import BOTH, make_record
from survey.cache import LocalCache
from survey.errors import PersistenceError


class TestLocalCache:
    def test_load_missing_file_returns_empty(self, cache):
        assert cache.load() == []

    def test_save_then_load(self, cache):
        records = [make_record(1, "01711000001", reason=BOTH, name="করিম")]
        cache.save(records)
        assert cache.load() == records

    def test_save_keeps_unicode_readable(self, cache):
        cache.save([make_record(1, "01711000001", name="করিম")])
        assert "করিম" in cache.path.read_text(encoding="utf-8")

    def test_save_overwrites(self, cache):
        cache.save([make_record(1, "1"), make_record(2, "2")])
        cache.save([make_record(3, "3")])
        assert [r["id"] for r in cache.load()] == [3]

    def test_invalid_json_returns_empty(self, cache):
        cache.path.parent.mkdir(parents=True)
        cache.path.write_text("{not json", encoding="utf-8")
        assert cache.load() == []

    def test_non_array_returns_empty(self, cache):
        cache.path.parent.mkdir(parents=True)
        cache.path.write_text(json.dumps({"data": []}), encoding="utf-8")
        assert cache.load() == []

    def test_unserializable_entries_raise(self, cache):
        with pytest.raises(PersistenceError):
            cache.save([object()])

    def test_unwritable_location_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        with pytest.raises(PersistenceError):
            LocalCache(blocker, "surveyData").save([])

    def test_key_is_sanitized(self, tmp_path):
        cache = LocalCache(tmp_path, "survey/data:v1")
        assert cache.path == tmp_path / "survey_data_v1.json"

    def test_clear(self, cache):
        cache.save([make_record(1, "1")])
        cache.clear()
        assert not cache.path.exists()
        cache.clear()
        assert cache.load() == []

    def test_no_temp_files_left_behind(self, cache):
        cache.save([make_record(1, "1")])
        assert [p.name for p in cache.path.parent.iterdir()] == [cache.path.name]
