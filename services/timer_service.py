# -*- coding: utf-8 -*-

import logging
from typing import Callable, Optional

from core.timer_engine import EngineSnapshot, PhaseEngine
from domain.models import Phase, PomodoroProgress, TaskUpdated, TaskUpdateSource
from services.task_service import TaskService

logger = logging.getLogger(__name__)


class TimerService:
    """
    Orchestrates:
    - PhaseEngine state
    - which task the engine credits (kept in sync with the list)
    - task transitions driven by the timer (started / skipped / completed)
    - callbacks for UI
    """

    def __init__(self, engine: PhaseEngine, tasks: TaskService):
        self.engine = engine
        self.tasks = tasks
        self.bus = engine.bus

        self._on_tick: Optional[Callable[[EngineSnapshot], None]] = None
        self._on_phase_change: Optional[Callable[[EngineSnapshot], None]] = None
        self._on_state_change: Optional[Callable[[EngineSnapshot], None]] = None

        # chain whatever hook (sound) the engine was built with
        self._outer_phase_hook = engine.on_phase_complete
        engine.on_phase_complete = self._phase_completed
        engine.on_tick = self._emit_tick

        self._unsubscribe = self.bus.subscribe(PomodoroProgress, self._log_progress)

    # ----- Callbacks -----
    def set_on_tick(self, fn: Callable[[EngineSnapshot], None]) -> None:
        self._on_tick = fn

    def set_on_phase_change(self, fn: Callable[[EngineSnapshot], None]) -> None:
        self._on_phase_change = fn

    def set_on_state_change(self, fn: Callable[[EngineSnapshot], None]) -> None:
        self._on_state_change = fn

    def _emit_tick(self) -> None:
        if self._on_tick:
            self._on_tick(self.engine.snapshot())

    def _emit_phase_change(self) -> None:
        if self._on_phase_change:
            self._on_phase_change(self.engine.snapshot())

    def _emit_state_change(self) -> None:
        if self._on_state_change:
            self._on_state_change(self.engine.snapshot())

    # ----- Public API -----
    def get_snapshot(self) -> EngineSnapshot:
        return self.engine.snapshot()

    def sync_current_task(self) -> None:
        """
        Point the engine at the list's current task. When the list has
        nothing left to work on, the timer is paused (the cycle is kept).
        """
        task = self.tasks.current_task
        self.engine.set_current_task(task.id if task else None)
        if task is None and self.engine.is_running:
            self.engine.pause()
            self._emit_state_change()

    def start(self) -> bool:
        self.sync_current_task()
        if not self.engine.start():
            return False

        task = self.tasks.current_task
        if task is not None:
            self.bus.publish(TaskUpdated(task=task, source=TaskUpdateSource.STARTED))

        self._emit_state_change()
        self._emit_tick()
        return True

    def pause(self) -> None:
        if self.engine.pause():
            self._emit_state_change()
            self._emit_tick()

    def toggle(self) -> None:
        if self.engine.is_running:
            self.pause()
        else:
            self.start()

    def skip_phase(self) -> None:
        self.engine.skip()
        self._emit_state_change()
        self._emit_tick()

    def reset(self) -> None:
        self.engine.reset()
        self._emit_state_change()
        self._emit_tick()

    def reset_cycle(self) -> None:
        self.engine.reset_cycle()
        self._emit_state_change()
        self._emit_tick()

    def toggle_interruption(
        self, interruption_type: Optional[str] = None, action: Optional[str] = None
    ) -> None:
        self.engine.interruptions.toggle(interruption_type, action)
        self._emit_state_change()

    # ----- task actions -----
    def _finish_current(self, source: TaskUpdateSource) -> Optional[TaskUpdated]:
        task = self.tasks.current_task
        if task is None:
            return None
        self.engine.set_current_task(task.id)

        # bank the seconds up to now before reading them
        self.engine.accrue_current_task()
        elapsed = self.engine.elapsed_pomodoros(task.id)
        # the event carries these seconds; drop them so no flush reports them again
        self.engine.clear_accumulated_time(task.id)

        event = TaskUpdated(task=task, source=source, elapsed_pomodoros=elapsed)
        self.bus.publish(event)
        return event

    def complete_current_task(self) -> Optional[TaskUpdated]:
        event = self._finish_current(TaskUpdateSource.COMPLETED)
        if event is not None:
            self.tasks.complete_task(event.task.id)
            self.sync_current_task()
        return event

    def skip_current_task(self) -> Optional[TaskUpdated]:
        event = self._finish_current(TaskUpdateSource.SKIPPED)
        if event is not None:
            self.tasks.postpone_current()
            self.sync_current_task()
        return event

    # ----- engine hooks -----
    def _phase_completed(self, old: Phase, new: Phase, skip: bool) -> None:
        task_id = self.engine.current_task_id
        if old == Phase.WORK and not skip and task_id:
            self.tasks.add_pomodoro(task_id)

        if self._outer_phase_hook is not None:
            self._outer_phase_hook(old, new, skip)
        self._emit_phase_change()

    @staticmethod
    def _log_progress(event: PomodoroProgress) -> None:
        logger.debug("progress %s: +%.2f", event.task_id, event.elapsed_pomodoros)

    def close(self) -> None:
        self._unsubscribe()
        self.engine.save_state()
