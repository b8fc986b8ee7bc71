# -*- coding: utf-8 -*-

import time
from collections import Counter
from typing import Any, Callable, Dict, List, Optional

from core.events import EventBus
from core.interruptions import InterruptionTracker
from domain.models import InterruptionRecord, PomodoroProgress, TaskUpdated
from services.task_service import TaskService


def _start_of_today_ts(now: Optional[float] = None) -> int:
    lt = time.localtime(time.time() if now is None else now)
    start = time.mktime(
        (
            lt.tm_year,
            lt.tm_mon,
            lt.tm_mday,
            0,
            0,
            0,
            lt.tm_wday,
            lt.tm_yday,
            lt.tm_isdst,
        )
    )
    return int(start)


class StatsService:
    """
    Read-only figures for the status bar. Progress credited through the bus
    is summed per task for the lifetime of the process.
    """

    def __init__(
        self,
        tasks: TaskService,
        interruptions: InterruptionTracker,
        bus: Optional[EventBus] = None,
        now: Callable[[], float] = time.time,
    ):
        self.tasks = tasks
        self.interruptions = interruptions
        self._now = now
        self.progress_by_task: Dict[str, float] = {}
        if bus is not None:
            bus.subscribe(PomodoroProgress, self._on_progress)
            bus.subscribe(TaskUpdated, self._on_task_updated)

    def _credit(self, task_id: str, pomodoros: Optional[float]) -> None:
        if pomodoros:
            self.progress_by_task[task_id] = round(
                self.progress_by_task.get(task_id, 0.0) + pomodoros, 2
            )

    def _on_progress(self, event: PomodoroProgress) -> None:
        self._credit(event.task_id, event.elapsed_pomodoros)

    def _on_task_updated(self, event: TaskUpdated) -> None:
        self._credit(event.task.id, event.elapsed_pomodoros)

    # ---- tasks ----
    def task_stats(self) -> Dict[str, int]:
        completed, total, pomodoros = self.tasks.stats()
        return {"completed": completed, "total": total, "pomodoros": pomodoros}

    def focus_pomodoros(self, task_id: str) -> float:
        return self.progress_by_task.get(task_id, 0.0)

    # ---- interruptions ----
    def _records_since(self, since_ts: Optional[float]) -> List[InterruptionRecord]:
        records = self.interruptions.records
        if since_ts is None:
            return records
        return [r for r in records if r.start_time >= since_ts]

    def total_interruption_sec(self, since_ts: Optional[float] = None) -> int:
        return sum(r.duration_seconds for r in self._records_since(since_ts))

    def total_today_interruption_sec(self) -> int:
        return self.total_interruption_sec(_start_of_today_ts(self._now()))

    def today_interruptions_by_type(self) -> Dict[str, int]:
        since = _start_of_today_ts(self._now())
        return dict(
            Counter(r.interruption_type or "unknown" for r in self._records_since(since))
        )

    def summary(self) -> Dict[str, Any]:
        out: Dict[str, Any] = self.task_stats()
        out.update(
            {
                "interruption_sec": self.total_interruption_sec(),
                "interruption_today_sec": self.total_today_interruption_sec(),
                "interruptions_today": self.today_interruptions_by_type(),
                "now_ts": int(self._now()),
            }
        )
        return out
