"""
Tests for the in-memory entry store — survey/store.py
"""
import logging
from unittest.mock import MagicMock

import pytest

from conftest import make_record
from survey.config import normalize_config
from survey.errors import PersistenceError
from survey.models import new_entry
from survey.store import EntryStore


class TestEntryStore:
    def test_current_is_read_only_view(self):
        store = EntryStore(entries=[make_record(1, "1")])
        view = store.current()
        assert isinstance(view, tuple)
        assert store.count() == 1

    def test_append_persists_and_notifies(self, cache):
        store = EntryStore(cache=cache)
        seen = []
        store.subscribe(seen.append)
        store.append(make_record(1, "01711000001"))
        assert cache.load() == [make_record(1, "01711000001")]
        assert len(seen) == 1 and seen[0] == store.current()

    def test_append_accepts_entry_objects(self, cache):
        config = normalize_config({"cache_dir": cache.cache_dir})
        entry = new_entry(
            {"phoneNumber": "01711000001", "profession": config.professions[0], "useMyGP": "no"},
            config,
            next_id=lambda: 7,
        )
        store = EntryStore(cache=cache)
        store.append(entry)
        assert store.current()[0]["phoneNumber"] == "01711000001"
        assert cache.load()[0]["id"] == 7

    def test_append_does_not_deduplicate(self):
        store = EntryStore()
        store.append(make_record(1, "01711000001"))
        store.append(make_record(2, "01711000001"))
        assert store.count() == 2

    def test_replace_all_stores_records_as_is(self, cache):
        store = EntryStore(cache=cache, entries=[make_record(1, "1")])
        store.replace_all([{"weird": True}, "not a record"])
        assert store.current() == ({"weird": True}, "not a record")
        assert cache.load() == [{"weird": True}, "not a record"]

    @pytest.mark.parametrize("bad", [None, {"data": []}, "entries", 3])
    def test_replace_all_rejects_non_lists(self, bad):
        store = EntryStore()
        with pytest.raises(TypeError):
            store.replace_all(bad)

    def test_from_cache_seeds_entries(self, cache):
        cache.save([make_record(1, "1"), make_record(2, "2")])
        assert EntryStore.from_cache(cache).count() == 2

    def test_persistence_failure_is_logged_not_raised(self, caplog):
        broken = MagicMock()
        broken.save.side_effect = PersistenceError("disk full")
        store = EntryStore(cache=broken)
        seen = []
        store.subscribe(seen.append)
        with caplog.at_level(logging.WARNING, logger="survey.store"):
            store.append(make_record(1, "1"))
        assert store.count() == 1
        assert len(seen) == 1
        assert "disk full" in caplog.text

    def test_failing_listener_does_not_block_others(self, caplog):
        store = EntryStore()
        seen = []

        def boom(_view):
            raise RuntimeError("listener broke")

        store.subscribe(boom)
        store.subscribe(seen.append)
        with caplog.at_level(logging.ERROR, logger="survey.store"):
            store.append(make_record(1, "1"))
        assert len(seen) == 1
        assert "listener broke" in caplog.text

    def test_unsubscribe(self):
        store = EntryStore()
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        store.append(make_record(1, "1"))
        assert seen == []
