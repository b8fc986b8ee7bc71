# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from core.events import EventBus
from core.timer_engine import PhaseEngine
from domain.models import InterruptionEnded, PomodoroProgress, TaskUpdated, TimerSettings
from services.task_service import TaskService
from services.timer_service import TimerService
from storage.repos import TaskListStore, TimerStateStore

from fakes import FakeClock, FakeTicker, MemoryPersistence, RecordingSink


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(0.0)


@pytest.fixture()
def ticker() -> FakeTicker:
    return FakeTicker()


@pytest.fixture()
def bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def sink(bus: EventBus) -> RecordingSink:
    return RecordingSink(bus, PomodoroProgress, TaskUpdated, InterruptionEnded)


@pytest.fixture()
def persistence() -> MemoryPersistence:
    return MemoryPersistence()


@pytest.fixture()
def timer_store(persistence: MemoryPersistence) -> TimerStateStore:
    return TimerStateStore(persistence)


@pytest.fixture()
def timer_settings() -> TimerSettings:
    return TimerSettings(
        work_duration=1500,
        break_duration=300,
        long_break_duration=900,
        cycles_until_long_break=4,
    )


@pytest.fixture()
def engine(timer_settings, clock, bus, ticker, timer_store) -> PhaseEngine:
    return PhaseEngine(
        settings=timer_settings,
        clock=clock,
        bus=bus,
        ticker=ticker,
        store=timer_store,
    )


@pytest.fixture()
def tasks_path(tmp_path: Path) -> Path:
    return tmp_path / "tasks.json"


@pytest.fixture()
def task_service(tasks_path: Path, persistence: MemoryPersistence) -> TaskService:
    return TaskService(TaskListStore(tasks_path), state=persistence)


@pytest.fixture()
def timer_service(engine: PhaseEngine, task_service: TaskService) -> TimerService:
    return TimerService(engine, task_service)
