"""Tests for collector_ai.store module."""

from __future__ import annotations

import json

import pytest

from collector_ai.models import Checkpoint, Mode, TriageDecision, TriageRecord
from collector_ai.store import (
    ACTIVE_KEY,
    CHECKPOINT_KEY,
    CheckpointStore,
    KeyValueStore,
    StoreCorruptedError,
)


class TestKeyValueStore:
    def test_set_and_get(self, tmp_path):
        kv = KeyValueStore(tmp_path / "state")
        kv.set("buffer", [{"name": "Item"}])
        assert kv.get("buffer") == [{"name": "Item"}]

    def test_get_missing_returns_default(self, tmp_path):
        kv = KeyValueStore(tmp_path / "state")
        assert kv.get("missing") is None
        assert kv.get("missing", 0) == 0

    def test_has(self, tmp_path):
        kv = KeyValueStore(tmp_path / "state")
        assert kv.has("flag") is False
        kv.set("flag", False)
        assert kv.has("flag") is True

    def test_state_dir_created_on_init(self, tmp_path):
        state_dir = tmp_path / "new_state_dir"
        assert not state_dir.exists()
        KeyValueStore(state_dir)
        assert state_dir.exists()

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        kv = KeyValueStore(tmp_path / "state")
        kv.set("counter", 1)
        kv.set("counter", 2)
        assert kv.get("counter") == 2
        assert [p.name for p in (tmp_path / "state").iterdir()] == ["counter.json"]

    def test_delete_and_keys(self, tmp_path):
        kv = KeyValueStore(tmp_path / "state")
        kv.set("a", 1)
        kv.set("b", 2)
        assert kv.keys() == ["a", "b"]
        kv.delete("a")
        kv.delete("never-set")
        assert kv.keys() == ["b"]

    def test_clear_removes_all(self, tmp_path):
        kv = KeyValueStore(tmp_path / "state")
        kv.set("a", 1)
        kv.set("b", 2)
        kv.clear()
        assert kv.keys() == []

    def test_corrupted_file_raises(self, tmp_path):
        kv = KeyValueStore(tmp_path / "state")
        kv.set("checkpoint", {"mode": "jobs"})
        (tmp_path / "state" / "checkpoint.json").write_text("not valid json{{{", encoding="utf-8")
        with pytest.raises(StoreCorruptedError, match="checkpoint"):
            kv.get("checkpoint")

    def test_invalid_key_rejected(self, tmp_path):
        kv = KeyValueStore(tmp_path / "state")
        with pytest.raises(ValueError, match="Invalid store key"):
            kv.set("../escape", 1)


class TestCheckpointStore:
    def test_load_without_session_returns_none(self, store):
        assert store.load() is None
        assert store.is_active() is False

    def test_start_sets_active_and_persists(self, store):
        store.start(Checkpoint(mode=Mode.JOBS, target_page_count=3))
        assert store.is_active() is True
        loaded = store.load()
        assert loaded.mode is Mode.JOBS
        assert loaded.target_page_count == 3
        assert loaded.active is True

    def test_round_trip_keeps_nested_state(self, store):
        checkpoint = Checkpoint(mode=Mode.PROFILES, ai_enabled=True, two_tier=True)
        checkpoint.cursor.item_ids = ["a", "b"]
        checkpoint.cursor.snapshotted = True
        checkpoint.cursor.index = 1
        checkpoint.buffer.append({"full_name": "Ada"})
        checkpoint.triage.append(TriageRecord(item_id="a", decision=TriageDecision.MAYBE, reason="unsure"))
        checkpoint.stats.evaluated = 4
        checkpoint.detail_url = "https://www.linkedin.com/in/a/"
        store.start(checkpoint)

        loaded = store.load()
        assert loaded.cursor.item_ids == ["a", "b"]
        assert loaded.cursor.index == 1
        assert loaded.buffer == [{"full_name": "Ada"}]
        assert loaded.triage_for("a").decision is TriageDecision.MAYBE
        assert loaded.counters[Mode.PROFILES].evaluated == 4
        assert loaded.counters[Mode.JOBS].evaluated == 0
        assert loaded.detail_url == "https://www.linkedin.com/in/a/"

    def test_save_never_touches_active_flag(self, store):
        checkpoint = Checkpoint(mode=Mode.JOBS)
        store.start(checkpoint)
        store.request_stop()

        checkpoint.current_page = 2
        store.save(checkpoint)

        assert store.is_active() is False
        assert store.load().active is False

    def test_active_flag_not_in_checkpoint_document(self, store):
        store.start(Checkpoint(mode=Mode.JOBS))
        raw = store.store.get(CHECKPOINT_KEY)
        assert "active" not in raw
        assert store.store.get(ACTIVE_KEY) is True

    def test_clear(self, store):
        store.start(Checkpoint(mode=Mode.JOBS))
        store.clear()
        assert store.load() is None
        assert store.is_active() is False

    def test_invalid_checkpoint_raises(self, store):
        store.store.set(CHECKPOINT_KEY, {"mode": "videos"})
        with pytest.raises(StoreCorruptedError, match="invalid"):
            store.load()

    def test_undecodable_checkpoint_raises(self, store, tmp_path):
        store.start(Checkpoint(mode=Mode.JOBS))
        (store.store.path / "checkpoint.json").write_text("{", encoding="utf-8")
        with pytest.raises(StoreCorruptedError):
            store.load()

    def test_document_is_plain_json(self, store):
        store.start(Checkpoint(mode=Mode.JOBS, formats=["json", "csv"]))
        raw = json.loads((store.store.path / "checkpoint.json").read_text(encoding="utf-8"))
        assert raw["mode"] == "jobs"
        assert raw["formats"] == ["json", "csv"]
        assert set(raw["counters"]) == {"jobs", "profiles"}
