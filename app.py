#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import logging
import tkinter as tk

from config import Settings
from core.clock import SystemClock
from core.events import EventBus
from core.timer_engine import PhaseEngine
from logging_setup import setup_logging
from services.stats_service import StatsService
from services.task_service import TaskService
from services.timer_service import TimerService
from storage.db import Database
from storage.repos import AppStateRepo, TaskListStore, TimerStateStore
from ui.main_window import MainWindow
from ui.pomodoro_widget import TkTicker

logger = logging.getLogger(__name__)


def main():
    settings = Settings.from_env()
    log_file = setup_logging(log_dir=settings.log_dir, console_level=settings.console_level)

    db = Database(db_path=settings.db_path)
    db.init_schema()
    state = AppStateRepo(db)

    root = tk.Tk()
    bus = EventBus()
    engine = PhaseEngine(
        clock=SystemClock(),
        bus=bus,
        ticker=TkTicker(root, settings.tick_ms),
        store=TimerStateStore(state),
    )
    engine.restore()

    task_service = TaskService(TaskListStore(settings.tasks_path), state=state)
    timer_service = TimerService(engine, task_service)
    stats_service = StatsService(task_service, engine.interruptions, bus=bus)

    logger.info("data in %s, log at %s", settings.data_dir, log_file)
    app = MainWindow(root, task_service, timer_service, stats_service)
    try:
        app.run()
    finally:
        db.close()


if __name__ == "__main__":
    main()
