# tests/test_events_and_config.py

from __future__ import annotations

import logging
from pathlib import Path

from config import Settings
from core.events import EventBus
from domain.models import PomodoroProgress, TaskUpdated


def test_publish_dispatches_by_type_in_order():
    bus = EventBus()
    seen = []
    bus.subscribe(PomodoroProgress, lambda e: seen.append(("first", e.task_id)))
    bus.subscribe(PomodoroProgress, lambda e: seen.append(("second", e.task_id)))
    bus.subscribe(TaskUpdated, lambda e: seen.append(("wrong", None)))

    bus.publish(PomodoroProgress("T", 0.5))
    assert seen == [("first", "T"), ("second", "T")]


def test_failing_handler_does_not_stop_delivery(caplog):
    bus = EventBus()
    seen = []

    def bad(_event):
        raise RuntimeError("boom")

    bus.subscribe(PomodoroProgress, bad)
    bus.subscribe(PomodoroProgress, seen.append)
    with caplog.at_level(logging.ERROR, logger="core.events"):
        bus.publish(PomodoroProgress("T", 0.1))

    assert len(seen) == 1
    assert "event handler failed" in caplog.text


def test_unsubscribe():
    bus = EventBus()
    seen = []
    off = bus.subscribe(PomodoroProgress, seen.append)
    off()
    off()
    bus.publish(PomodoroProgress("T", 0.1))
    assert seen == []


def test_settings_defaults(monkeypatch):
    for k in ("DATA_DIR", "DB_PATH", "TASKS_PATH", "LOG_DIR", "LOG_LEVEL", "TICK_MS"):
        monkeypatch.delenv(f"POMOTREE_{k}", raising=False)
    s = Settings.from_env()
    assert s.data_dir == Path(".local/pomotree")
    assert s.db_path == Path(".local/pomotree/pomotree.db")
    assert s.tasks_path == Path(".local/pomotree/tasks.json")
    assert s.console_level == logging.INFO
    assert s.tick_ms == 1000


def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("POMOTREE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("POMOTREE_LOG_LEVEL", "debug")
    monkeypatch.setenv("POMOTREE_TICK_MS", "garbage")
    monkeypatch.delenv("POMOTREE_DB_PATH", raising=False)
    s = Settings.from_env()
    assert s.db_path == tmp_path / "pomotree.db"
    assert s.console_level == logging.DEBUG
    assert s.tick_ms == 1000
