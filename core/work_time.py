# -*- coding: utf-8 -*-

import logging
import math
from typing import Callable, Dict, Mapping, Optional

from core.events import EventBus
from domain.models import PomodoroProgress

logger = logging.getLogger(__name__)


def hundredths_of_pomodoro(seconds: int, work_seconds: int) -> int:
    """Whole hundredths of a pomodoro contained in `seconds` of work."""
    if seconds <= 0 or work_seconds <= 0:
        return 0
    return (int(seconds) * 100) // int(work_seconds)


class WorkTimeAccumulator:
    """
    Per-task real work seconds, excluding pauses and interruptions.

    The current task accrues inside a "window" opened at task_start_time.
    Each accrue() recomputes the window total from timestamps, so repeated
    calls never drift:

        accumulated[task] = carried[task] + floor(now - task_start_time - task_paused_duration)

    carried holds seconds that were still unflushed when the window opened.
    A flush emits PomodoroProgress for the hundredths not yet reported and
    remembers them in _credited, so the same seconds are never reported twice
    even though the next accrue() restores the absolute window total.
    """

    def __init__(self, bus: EventBus, work_seconds: Callable[[], int]):
        self.bus = bus
        self._work_seconds = work_seconds

        self.accumulated: Dict[str, int] = {}
        self.task_start_time: Optional[float] = None
        self.task_paused_duration: float = 0.0

        self._carried: Dict[str, int] = {}
        self._credited: Dict[str, int] = {}  # task_id -> hundredths already emitted

    # ----- window -----
    @property
    def window_open(self) -> bool:
        return self.task_start_time is not None

    def begin_window(self, now: float) -> None:
        self.task_start_time = now
        self.task_paused_duration = 0.0
        self._carried = dict(self.accumulated)
        # credits only make sense against a total that is still tracked
        self._credited = {
            k: v for k, v in self._credited.items() if k in self.accumulated
        }

    def end_window(self) -> None:
        self.task_start_time = None
        self.task_paused_duration = 0.0
        self._carried = {}

    def add_paused(self, seconds: float) -> None:
        if self.window_open and seconds > 0:
            self.task_paused_duration += seconds

    # ----- accrual -----
    def accrue(self, task_id: Optional[str], now: float) -> int:
        """
        Recompute the absolute total for task_id. Callers gate on
        work phase and interruption mode.
        """
        if not task_id or self.task_start_time is None:
            return self.accumulated.get(task_id or "", 0)

        elapsed = now - self.task_start_time - self.task_paused_duration
        total = self._carried.get(task_id, 0) + max(0, int(math.floor(elapsed)))
        self.accumulated[task_id] = total
        return total

    def switch_task(
        self,
        old_task_id: Optional[str],
        new_task_id: Optional[str],
        now: float,
        reopen: bool,
    ) -> None:
        """
        Flush what the old task earned and, when the timer is running in an
        uninterrupted work phase, restart the window for the new task.
        Otherwise close the window; the next start opens a fresh one.
        """
        if old_task_id == new_task_id:
            return
        if old_task_id:
            self.flush_all()
        if reopen and new_task_id:
            self.begin_window(now)
        else:
            self.end_window()

    # ----- read -----
    def accumulated_seconds(self, task_id: str) -> int:
        return self.accumulated.get(task_id, 0)

    def pending_hundredths(self, task_id: str) -> int:
        if task_id not in self.accumulated:
            return 0
        total = hundredths_of_pomodoro(
            self.accumulated[task_id], self._work_seconds()
        )
        return max(0, total - self._credited.get(task_id, 0))

    def elapsed_pomodoros(self, task_id: Optional[str]) -> float:
        if not task_id:
            return 0.0
        return self.pending_hundredths(task_id) / 100

    # ----- flush / clear -----
    def flush_all(self) -> int:
        """
        Emit PomodoroProgress for every task with unreported work, then
        clear the accumulation. Returns the number of events emitted.
        """
        if not self.accumulated:
            return 0

        emitted = 0
        work = self._work_seconds()
        for task_id, seconds in list(self.accumulated.items()):
            if seconds <= 0:
                continue
            total = hundredths_of_pomodoro(seconds, work)
            pending = total - self._credited.get(task_id, 0)
            if pending <= 0:
                continue
            self._credited[task_id] = total
            logger.debug("flush %s: %s s -> %.2f pomodoro", task_id, seconds, pending / 100)
            self.bus.publish(PomodoroProgress(task_id=task_id, elapsed_pomodoros=pending / 100))
            emitted += 1

        self.accumulated.clear()
        return emitted

    def clear(self, task_id: str) -> None:
        """Drop a task's accumulation without emitting anything."""
        self.accumulated.pop(task_id, None)
        self._carried.pop(task_id, None)
        self._credited.pop(task_id, None)

    def reset_task(self, task_id: Optional[str]) -> None:
        if task_id:
            self.clear(task_id)
        self.end_window()

    def clear_all(self) -> None:
        self.accumulated.clear()
        self._credited.clear()
        self.end_window()

    # ----- persistence -----
    def snapshot(self) -> Dict[str, int]:
        """Unreported seconds per task, safe to restore after a restart."""
        work = self._work_seconds()
        out: Dict[str, int] = {}
        for task_id, seconds in self.accumulated.items():
            credited_sec = -(-self._credited.get(task_id, 0) * work // 100)  # ceil
            left = seconds - credited_sec
            if left > 0:
                out[task_id] = left
        return out

    def load(self, mapping: Mapping[str, int]) -> None:
        self.accumulated = {str(k): int(v) for k, v in mapping.items() if int(v) > 0}
        self._credited = {}
        self._carried = {}
