# -*- coding: utf-8 -*-

import logging
from typing import TYPE_CHECKING, Iterable, List, Optional

from core.events import EventBus
from domain.models import InterruptionEnded, InterruptionRecord, Phase

if TYPE_CHECKING:
    from core.timer_engine import PhaseEngine

logger = logging.getLogger(__name__)

DEFAULT_INTERRUPTION_TYPE = "chore"


class InterruptionTracker:
    """
    Off-task time: keeps the phase clock running but suspends task accrual.
    Durations are plain wall-clock deltas (never pause-adjusted).
    """

    def __init__(self, engine: "PhaseEngine", bus: EventBus):
        self.engine = engine
        self.bus = bus

        self.is_active = False
        self.start_time: Optional[float] = None
        self.live_seconds = 0
        self.interruption_type: Optional[str] = None
        self.selected_action: Optional[str] = None

        self._records: List[InterruptionRecord] = []

    @property
    def records(self) -> List[InterruptionRecord]:
        return list(self._records)

    def load(self, records: Iterable[InterruptionRecord]) -> None:
        self._records = list(records)

    # ----- transitions -----
    def start(self, interruption_type: str, action: Optional[str] = None) -> bool:
        if self.is_active:
            return False

        now = self.engine.clock.now()
        # bank the work done up to this instant, then stop the task window
        self.engine.accrue_current_task(now)
        self.engine.work.end_window()

        self.is_active = True
        self.start_time = now
        self.live_seconds = 0
        self.interruption_type = interruption_type
        self.selected_action = action
        logger.debug("interruption started: %s", interruption_type)

        if not self.engine.is_running:
            self.engine.start()
        return True

    def end(self) -> Optional[InterruptionRecord]:
        if not self.is_active:
            return None

        now = self.engine.clock.now()
        record: Optional[InterruptionRecord] = None
        if self.start_time is not None:
            duration = int(now - self.start_time)
            if duration > 0:
                record = InterruptionRecord(
                    start_time=self.start_time,
                    end_time=now,
                    duration_seconds=duration,
                    interruption_type=self.interruption_type,
                    selected_action=self.selected_action,
                )
                self._records.append(record)
                self._save()
                logger.info(
                    "interruption recorded: %s (%ss)", self.interruption_type, duration
                )
                self.bus.publish(
                    InterruptionEnded(
                        start_time=record.start_time,
                        end_time=record.end_time,
                        duration_seconds=record.duration_seconds,
                        interruption_type=self.interruption_type or "",
                        selected_action=self.selected_action or "",
                    )
                )

        self.is_active = False
        self.start_time = None
        self.live_seconds = 0
        self.interruption_type = None
        self.selected_action = None

        engine = self.engine
        if engine.is_running and engine.phase == Phase.WORK and engine.current_task_id:
            engine.work.begin_window(now)
        return record

    def toggle(
        self, interruption_type: Optional[str] = None, action: Optional[str] = None
    ) -> None:
        if self.is_active:
            self.end()
        else:
            self.start(interruption_type or DEFAULT_INTERRUPTION_TYPE, action)

    # ----- tick support -----
    def refresh(self, now: float) -> None:
        if self.is_active and self.start_time is not None:
            self.live_seconds = max(0, int(now - self.start_time))

    def reset_live(self) -> None:
        self.live_seconds = 0

    def clear_records(self) -> None:
        self._records.clear()
        self._save()

    def _save(self) -> None:
        if self.engine.store is not None:
            self.engine.store.save_interruption_records(self._records)
