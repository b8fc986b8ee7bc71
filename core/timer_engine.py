# -*- coding: utf-8 -*-

import dataclasses
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol

from core.clock import Clock, NullTicker, SystemClock, Ticker
from core.events import EventBus
from core.interruptions import InterruptionTracker
from core.work_time import WorkTimeAccumulator
from domain.models import InterruptionRecord, Phase, TimerSettings, TimerState

logger = logging.getLogger(__name__)

CHECKPOINT_EVERY_SEC = 30


@dataclass
class EngineSnapshot:
    phase: Phase
    remaining_sec: int
    is_running: bool
    is_idle: bool
    session_count: int
    cycles_until_long_break: int
    current_task_id: Optional[str]
    in_interruption: bool
    interruption_sec: int


class TimerStore(Protocol):
    def load_settings(self, defaults: TimerSettings) -> TimerSettings: ...
    def save_settings(self, settings: TimerSettings) -> None: ...
    def load_timer_state(self, defaults: TimerState) -> TimerState: ...
    def save_timer_state(self, state: TimerState, accumulation: Dict[str, int]) -> None: ...
    def load_accumulation(self) -> Dict[str, int]: ...
    def load_interruption_records(self) -> List[InterruptionRecord]: ...
    def save_interruption_records(self, records: List[InterruptionRecord]) -> None: ...


PhaseHook = Callable[[Phase, Phase, bool], None]


class PhaseEngine:
    """
    Timestamp-based work/break/long-break state machine (no Tkinter).

    remaining time is always derived from wall-clock deltas:

        elapsed   = now - phase_start_time - total_paused_duration
        remaining = max(0, duration(phase) - floor(elapsed))

    so late, missing or bunched ticks self-correct on the next call.
    A Ticker calls tick() about once per second while running.
    """

    def __init__(
        self,
        settings: Optional[TimerSettings] = None,
        clock: Optional[Clock] = None,
        bus: Optional[EventBus] = None,
        ticker: Optional[Ticker] = None,
        store: Optional[TimerStore] = None,
        on_phase_complete: Optional[PhaseHook] = None,
    ):
        self.settings = settings or TimerSettings()
        self.clock = clock or SystemClock()
        self.bus = bus or EventBus()
        self.ticker = ticker or NullTicker()
        self.store = store
        self.on_phase_complete = on_phase_complete
        # called after every tick, once remaining time is up to date
        self.on_tick: Optional[Callable[[], None]] = None

        self.state = TimerState(remaining_seconds=self.settings.work_duration)
        self.current_task_id: Optional[str] = None

        self.work = WorkTimeAccumulator(self.bus, lambda: self.settings.work_duration)
        self.interruptions = InterruptionTracker(self, self.bus)

    # ----- read accessors -----
    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def remaining_seconds(self) -> int:
        return self.state.remaining_seconds

    @property
    def is_running(self) -> bool:
        return self.state.is_running

    @property
    def session_count(self) -> int:
        return self.state.session_count

    def phase_duration(self, phase: Optional[Phase] = None) -> int:
        return self.settings.duration_for(phase or self.state.phase)

    def snapshot(self) -> EngineSnapshot:
        st = self.state
        return EngineSnapshot(
            phase=st.phase,
            remaining_sec=st.remaining_seconds,
            is_running=st.is_running,
            is_idle=(not st.is_running) and st.phase_start_time is None,
            session_count=st.session_count,
            cycles_until_long_break=self.settings.cycles_until_long_break,
            current_task_id=self.current_task_id,
            in_interruption=self.interruptions.is_active,
            interruption_sec=self.interruptions.live_seconds,
        )

    def elapsed_pomodoros(self, task_id: Optional[str] = None) -> float:
        if self.state.phase != Phase.WORK:
            return 0.0
        return self.work.elapsed_pomodoros(task_id or self.current_task_id)

    # ----- transitions -----
    def start(self) -> bool:
        st = self.state
        if st.is_running:
            return False

        now = self.clock.now()
        if st.phase_start_time is None:
            # fresh phase; keep whatever was already consumed of it
            consumed = max(0, self.phase_duration() - st.remaining_seconds)
            st.phase_start_time = now - consumed
            st.total_paused_duration = 0.0
            st.paused_at = None
        elif st.paused_at is not None:
            paused = max(0.0, now - st.paused_at)
            st.total_paused_duration += paused
            self.work.add_paused(paused)
            st.paused_at = None

        st.is_running = True

        if (
            st.phase == Phase.WORK
            and self.current_task_id
            and not self.interruptions.is_active
            and not self.work.window_open
        ):
            self.work.begin_window(now)

        self.ticker.start(self.tick)
        logger.debug("start: phase=%s remaining=%s", st.phase.value, st.remaining_seconds)
        return True

    def pause(self) -> bool:
        st = self.state
        if not st.is_running:
            return False

        now = self.clock.now()
        self.accrue_current_task(now)

        st.is_running = False
        st.paused_at = now
        self.ticker.stop()

        self.work.flush_all()
        self.save_state()
        logger.debug("pause: phase=%s remaining=%s", st.phase.value, st.remaining_seconds)
        return True

    def toggle(self) -> None:
        if self.state.is_running:
            self.pause()
        else:
            self.start()

    def skip(self) -> None:
        self.pause()
        self._complete_phase(skip=True)
        self.start()

    def reset(self) -> None:
        st = self.state
        now = self.clock.now()
        self.accrue_current_task(now)
        self.work.flush_all()

        st.is_running = False
        self.ticker.stop()
        st.phase_start_time = None
        st.paused_at = None
        st.total_paused_duration = 0.0
        st.remaining_seconds = self.phase_duration()

        if st.phase == Phase.WORK:
            self.work.reset_task(self.current_task_id)
            self.interruptions.reset_live()
        else:
            self.work.end_window()

        self.save_state()
        logger.debug("reset: phase=%s", st.phase.value)

    def reset_cycle(self) -> None:
        self.pause()

        st = self.state
        st.phase = Phase.WORK
        st.remaining_seconds = self.settings.work_duration
        st.session_count = 0
        st.phase_start_time = None
        st.paused_at = None
        st.total_paused_duration = 0.0

        # interruption log survives a cycle reset
        self.work.clear_all()
        self.save_state()
        logger.debug("cycle reset")

    def update_settings(self, settings: TimerSettings) -> None:
        """Apply new durations and restart from a fresh work phase."""
        self.pause()

        self.settings = settings
        st = self.state
        st.phase = Phase.WORK
        st.remaining_seconds = settings.work_duration
        st.session_count = 0
        st.phase_start_time = None
        st.paused_at = None
        st.total_paused_duration = 0.0
        self.work.end_window()

        if self.store is not None:
            self.store.save_settings(settings)
        self.save_state()

    def update_sound_settings(self, **changes) -> None:
        # sound fields are opaque to the engine; no timer state changes
        self.settings = dataclasses.replace(self.settings, **changes)
        if self.store is not None:
            self.store.save_settings(self.settings)

    def tick(self) -> None:
        if not self.state.is_running:
            return
        self._advance()
        if self.on_tick is not None:
            self.on_tick()

    def _advance(self) -> None:
        st = self.state
        now = self.clock.now()

        duration = self.phase_duration()
        elapsed = now - st.phase_start_time - st.total_paused_duration
        remaining = max(0, duration - int(math.floor(elapsed)))

        if remaining <= 0:
            # credit work only up to the moment the phase actually ended
            phase_end = st.phase_start_time + st.total_paused_duration + duration
            self.accrue_current_task(min(now, phase_end))
            st.remaining_seconds = 0
            self._complete_phase()
            return

        st.remaining_seconds = remaining
        self.interruptions.refresh(now)
        self.accrue_current_task(now)

        if remaining % CHECKPOINT_EVERY_SEC == 0:
            self.save_state()

    # ----- foreground / background -----
    def on_foreground(self) -> None:
        if self.state.is_running:
            self.tick()

    def on_background(self) -> None:
        if self.state.is_running:
            self.save_state()

    # ----- task coupling -----
    def set_current_task(self, task_id: Optional[str]) -> None:
        old = self.current_task_id
        if old == task_id:
            return

        now = self.clock.now()
        self.accrue_current_task(now)
        reopen = (
            self.state.is_running
            and self.state.phase == Phase.WORK
            and not self.interruptions.is_active
        )
        self.work.switch_task(old, task_id, now, reopen)
        self.current_task_id = task_id

    def clear_accumulated_time(self, task_id: str) -> None:
        self.work.clear(task_id)
        if task_id == self.current_task_id and self.work.window_open:
            # the cleared seconds must not be recomputed back from the window
            if self.state.is_running:
                self.work.begin_window(self.clock.now())
            else:
                self.work.end_window()

    def accrue_current_task(self, now: Optional[float] = None) -> None:
        st = self.state
        if not (
            st.is_running
            and st.phase == Phase.WORK
            and self.current_task_id
            and not self.interruptions.is_active
        ):
            return
        self.work.accrue(self.current_task_id, self.clock.now() if now is None else now)

    # ----- phase completion -----
    def _complete_phase(self, skip: bool = False) -> None:
        # `skip` only records why the phase ended; behaviour is identical.
        st = self.state
        old = st.phase

        if old == Phase.WORK:
            st.session_count += 1
            self.work.flush_all()
            if st.session_count >= self.settings.cycles_until_long_break:
                st.phase = Phase.LONG_BREAK
                st.session_count = 0
            else:
                st.phase = Phase.BREAK
        else:
            st.phase = Phase.WORK

        now = self.clock.now()
        st.remaining_seconds = self.phase_duration()
        st.phase_start_time = now
        st.total_paused_duration = 0.0
        st.paused_at = None

        if (
            st.phase == Phase.WORK
            and self.current_task_id
            and not self.interruptions.is_active
        ):
            self.work.begin_window(now)
        else:
            self.work.end_window()

        logger.info(
            "phase %s -> %s (session %s%s)",
            old.value,
            st.phase.value,
            st.session_count,
            ", skipped" if skip else "",
        )
        self.save_state()

        if self.on_phase_complete is not None:
            try:
                self.on_phase_complete(old, st.phase, skip)
            except Exception:
                logger.exception("phase completion hook failed")

    # ----- persistence -----
    def save_state(self) -> None:
        if self.store is None:
            return
        self.store.save_timer_state(self.state, self.work.snapshot())

    def restore(self) -> None:
        """
        Load settings, timer state, unflushed work and the interruption log.
        The restored timer is always stopped.
        """
        if self.store is None:
            return

        self.settings = self.store.load_settings(self.settings)
        defaults = TimerState(remaining_seconds=self.settings.work_duration)
        st = self.store.load_timer_state(defaults)
        st.is_running = False

        now = self.clock.now()
        duration = self.settings.duration_for(st.phase)
        if st.phase_start_time is not None:
            if st.paused_at is None:
                # last checkpoint was taken while running: the gap counted as phase time
                st.paused_at = now
            elapsed = st.paused_at - st.phase_start_time - st.total_paused_duration
            st.remaining_seconds = max(0, duration - int(math.floor(elapsed)))
        st.remaining_seconds = min(max(0, st.remaining_seconds), duration)
        self.state = st

        self.work.load(self.store.load_accumulation())
        self.interruptions.load(self.store.load_interruption_records())
        logger.debug(
            "restored: phase=%s remaining=%s sessions=%s",
            st.phase.value,
            st.remaining_seconds,
            st.session_count,
        )
