# tests/test_work_time.py

from __future__ import annotations

import pytest

from core.events import EventBus
from core.work_time import WorkTimeAccumulator, hundredths_of_pomodoro
from domain.models import PomodoroProgress

from fakes import RecordingSink


@pytest.fixture()
def acc(bus: EventBus) -> WorkTimeAccumulator:
    return WorkTimeAccumulator(bus, lambda: 1500)


@pytest.fixture()
def progress(bus: EventBus) -> RecordingSink:
    return RecordingSink(bus, PomodoroProgress)


def _credits(sink: RecordingSink):
    return [(e.task_id, e.elapsed_pomodoros) for e in sink.events]


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, 0), (14, 0), (15, 1), (700, 46), (1500, 100), (3000, 200)],
)
def test_hundredths_of_pomodoro(seconds, expected):
    assert hundredths_of_pomodoro(seconds, 1500) == expected


def test_zero_work_duration_gives_nothing():
    assert hundredths_of_pomodoro(600, 0) == 0


def test_accrue_is_monotonic(acc):
    acc.begin_window(0)
    seen = [acc.accrue("A", t) for t in (1, 1.5, 10, 10.9, 25, 300)]
    assert seen == sorted(seen)
    assert seen[-1] == 300


def test_accrue_without_window_is_a_noop(acc):
    assert acc.accrue("A", 100) == 0
    assert acc.accumulated == {}


def test_paused_time_is_excluded(acc):
    acc.begin_window(0)
    acc.add_paused(40)
    assert acc.accrue("A", 100) == 60


def test_flush_emits_then_clears(acc, progress):
    acc.begin_window(0)
    acc.accrue("A", 300)
    assert acc.flush_all() == 1
    assert _credits(progress) == [("A", 0.2)]
    assert acc.elapsed_pomodoros("A") == 0
    assert acc.flush_all() == 0


def test_flush_skips_tasks_below_one_hundredth(acc, progress):
    acc.begin_window(0)
    acc.accrue("A", 10)
    assert acc.flush_all() == 0
    assert progress.events == []
    assert acc.accumulated == {}


def test_same_window_is_never_reported_twice(acc, progress):
    acc.begin_window(0)
    acc.accrue("A", 300)
    acc.flush_all()
    acc.accrue("A", 600)
    assert acc.elapsed_pomodoros("A") == 0.2
    acc.flush_all()
    assert _credits(progress) == [("A", 0.2), ("A", 0.2)]


def test_switch_task_flushes_old_and_restarts_window(acc, progress):
    acc.begin_window(0)
    acc.accrue("A", 150)
    acc.switch_task("A", "B", 150, reopen=True)
    assert _credits(progress) == [("A", 0.1)]

    assert acc.accrue("B", 210) == 60


def test_switch_task_when_not_reopening_leaves_window_closed(acc):
    acc.switch_task(None, "B", 50, reopen=False)
    assert not acc.window_open


def test_clear_drops_without_emitting(acc, progress):
    acc.begin_window(0)
    acc.accrue("A", 900)
    acc.clear("A")
    assert acc.accumulated_seconds("A") == 0
    acc.flush_all()
    assert progress.events == []


def test_snapshot_excludes_already_credited_seconds(acc):
    acc.begin_window(0)
    acc.accrue("A", 700)
    acc.flush_all()
    acc.accrue("A", 1000)
    # 0.46 credited ~ 690 s
    assert acc.snapshot() == {"A": 310}

    fresh = WorkTimeAccumulator(EventBus(), lambda: 1500)
    fresh.load(acc.snapshot())
    assert fresh.pending_hundredths("A") == acc.pending_hundredths("A")


def test_load_ignores_non_positive_entries(acc):
    acc.load({"A": 0, "B": -5, "C": 42})
    assert acc.accumulated == {"C": 42}


def test_switch_while_stopped_closes_the_old_window(acc, progress):
    acc.begin_window(0)
    acc.accrue("A", 700)
    acc.flush_all()

    acc.switch_task("A", "B", 800, reopen=False)
    assert not acc.window_open

    # resuming opens a fresh window for B only
    acc.begin_window(900)
    assert acc.accrue("B", 1000) == 100
    assert _credits(progress) == [("A", 0.46)]
