# tests/test_storage.py

from __future__ import annotations

import json
from pathlib import Path

import pytest

from domain.models import InterruptionRecord, Phase, Priority, Task, TimerSettings, TimerState
from storage.db import Database
from storage.repos import AppStateRepo, TaskListStore, TimerStateStore


@pytest.fixture()
def repo(tmp_path: Path):
    db = Database(tmp_path / "state.db")
    db.init_schema()
    yield AppStateRepo(db)
    db.close()


def test_typed_values_round_trip(repo):
    repo.set("i", 42)
    repo.set("b", False)
    repo.set("s", "tab")
    repo.set("d", 0.75)

    assert repo.get_int("i") == 42
    assert repo.get_bool("b") is False
    assert repo.get_string("s") == "tab"
    assert repo.get_double("d") == 0.75
    assert repo.get_int("missing") is None


def test_bad_numbers_read_as_missing(repo):
    repo.set("n", "not a number")
    assert repo.get_int("n") is None
    assert repo.get_double("n") is None


def test_remove_and_blobs(repo):
    repo.set("k", 1)
    repo.remove("k")
    assert repo.get_string("k") is None

    assert repo.get_blob("blob") is None
    repo.set_blob("blob", b"\x00\x01")
    repo.set_blob("blob", b"{}")
    assert repo.get_blob("blob") == b"{}"


def test_schema_init_is_idempotent(tmp_path):
    db = Database(tmp_path / "x.db")
    db.init_schema()
    db.init_schema()
    assert db._table_exists("app_state")
    assert "updated_at" in db._cols("app_blobs")
    db.close()


def test_timer_state_round_trip(repo):
    store = TimerStateStore(repo)
    state = TimerState(
        phase=Phase.LONG_BREAK,
        remaining_seconds=321,
        session_count=0,
        phase_start_time=1000.5,
        paused_at=1200.0,
        total_paused_duration=12.0,
    )
    store.save_timer_state(state, {"T": 99})

    loaded = store.load_timer_state(TimerState())
    assert loaded.phase == Phase.LONG_BREAK
    assert loaded.remaining_seconds == 321
    assert loaded.phase_start_time == 1000.5
    assert loaded.paused_at == 1200.0
    assert loaded.total_paused_duration == 12.0
    assert store.load_accumulation() == {"T": 99}


def test_cleared_timestamps_are_removed(repo):
    store = TimerStateStore(repo)
    store.save_timer_state(TimerState(phase_start_time=5.0, paused_at=6.0), {})
    store.save_timer_state(TimerState(), {})
    loaded = store.load_timer_state(TimerState())
    assert loaded.phase_start_time is None
    assert loaded.paused_at is None


def test_settings_round_trip(repo):
    store = TimerStateStore(repo)
    wanted = TimerSettings(work_duration=3000, cycles_until_long_break=2, start_sound="Tink")
    store.save_settings(wanted)
    assert store.load_settings(TimerSettings()) == wanted


def test_corrupt_blobs_fall_back_to_defaults(persistence):
    store = TimerStateStore(persistence)
    persistence.set_blob("pomodoro_accumulated_work_time", b"\xff\xfe not json")
    persistence.set_blob("pomodoro_interruption_records", b'[{"startTime": "soon"}]')
    persistence.set("pomodoro_current_phase", "lunch")

    assert store.load_accumulation() == {}
    assert store.load_interruption_records() == []
    assert store.load_timer_state(TimerState()).phase == Phase.WORK


def test_interruption_records_round_trip(persistence):
    store = TimerStateStore(persistence)
    rec = InterruptionRecord(10.0, 70.0, 60, "phone", None)
    store.save_interruption_records([rec])
    assert store.load_interruption_records() == [rec]


def test_task_list_document(tmp_path):
    path = tmp_path / "nested" / "tasks.json"
    store = TaskListStore(path)
    parent = Task(title="P", priority=Priority.HIGH, pomodoro_count=2)
    child = Task(title="C", parent_id=parent.id, indent_level=1, completed=True)
    store.save([child, parent], last_modified=123.0)

    doc = json.loads(path.read_text(encoding="utf-8"))
    assert doc["lastModified"] == 123.0
    assert doc["tasks"][0]["parentId"] == parent.id
    assert doc["tasks"][0]["isCompleted"] is True

    assert store.load() == [child, parent]


def test_task_list_missing_or_corrupt_is_empty(tmp_path):
    path = tmp_path / "tasks.json"
    assert TaskListStore(path).load() == []
    path.write_text("{ nope", encoding="utf-8")
    assert TaskListStore(path).load() == []
    path.write_text('{"tasks": [{"title": "no id"}]}', encoding="utf-8")
    assert TaskListStore(path).load() == []
