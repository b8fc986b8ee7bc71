# -*- coding: utf-8 -*-

import logging
import tkinter as tk
from tkinter import ttk
from typing import Callable, Optional

from core.timer_engine import EngineSnapshot
from domain.models import Phase
from services.timer_service import TimerService

logger = logging.getLogger(__name__)

PHASE_LABELS = {
    Phase.WORK: "Deep Work",
    Phase.BREAK: "Rest Time",
    Phase.LONG_BREAK: "Long Rest",
}


def format_time(seconds: int) -> str:
    m = max(0, seconds) // 60
    s = max(0, seconds) % 60
    return f"{m:02d}:{s:02d}"


class TkTicker:
    """Ticker driven by Tk's after(); fires on the UI thread."""

    def __init__(self, widget: tk.Misc, interval_ms: int = 1000):
        self.widget = widget
        self.interval_ms = interval_ms
        self._job = None
        self._callback: Optional[Callable[[], None]] = None

    @property
    def is_active(self) -> bool:
        return self._job is not None

    def start(self, callback: Callable[[], None]) -> None:
        self._callback = callback
        if self._job is None:
            self._job = self.widget.after(self.interval_ms, self._fire)

    def stop(self) -> None:
        if self._job is not None:
            try:
                self.widget.after_cancel(self._job)
            except tk.TclError:
                logger.debug("tick job already gone")
            self._job = None

    def _fire(self) -> None:
        cb = self._callback
        # reschedule first: the callback may stop() us
        self._job = self.widget.after(self.interval_ms, self._fire)
        if cb is not None:
            cb()


class PomodoroWidget(ttk.Frame):
    def __init__(
        self,
        master,
        timer_service: TimerService,
        on_request_refresh: Callable[[], None],
    ):
        super().__init__(master)

        self.timer_service = timer_service
        self.on_request_refresh = on_request_refresh

        self._build_ui()

        # wire callbacks from service -> widget UI
        self.timer_service.set_on_tick(self._on_tick)
        self.timer_service.set_on_phase_change(self._on_phase_change)
        self.timer_service.set_on_state_change(self._on_state_change)

        # returning to the window reconciles against the clock; leaving checkpoints
        top = self.winfo_toplevel()
        for seq in ("<FocusIn>", "<Map>"):
            top.bind(seq, self._on_foreground, add="+")
        for seq in ("<FocusOut>", "<Unmap>"):
            top.bind(seq, self._on_background, add="+")

        # initial render
        self._render(self.timer_service.get_snapshot())
        self._update_buttons()

    def _build_ui(self):
        self.columnconfigure(0, weight=1)

        self.phase_var = tk.StringVar(value=PHASE_LABELS[Phase.WORK])
        self.time_var = tk.StringVar(value="25:00")
        self.info_var = tk.StringVar(value="Add a task to start")
        self.cycle_var = tk.StringVar(value="")

        title = ttk.Label(self, text="Pomodoro", font=("Sans", 12, "bold"))
        title.grid(row=0, column=0, sticky="w", pady=(0, 6))

        self.phase_label = ttk.Label(self, textvariable=self.phase_var)
        self.phase_label.grid(row=1, column=0, sticky="w")

        self.time_label = ttk.Label(
            self, textvariable=self.time_var, font=("Sans", 32, "bold")
        )
        self.time_label.grid(row=2, column=0, sticky="w", pady=(8, 4))

        ttk.Label(self, textvariable=self.cycle_var).grid(row=3, column=0, sticky="w")

        self.info_label = ttk.Label(self, textvariable=self.info_var)
        self.info_label.grid(row=4, column=0, sticky="w", pady=(0, 10))

        btns = ttk.Frame(self)
        btns.grid(row=5, column=0, sticky="w")

        self.start_btn = ttk.Button(btns, text="Start", command=self._toggle)
        self.skip_btn = ttk.Button(btns, text="Skip", command=self._skip)
        self.reset_btn = ttk.Button(btns, text="Reset", command=self._reset)
        self.interrupt_btn = ttk.Button(btns, text="Interrupt", command=self._interrupt)

        self.start_btn.grid(row=0, column=0, padx=(0, 6))
        self.skip_btn.grid(row=0, column=1, padx=(0, 6))
        self.reset_btn.grid(row=0, column=2, padx=(0, 6))
        self.interrupt_btn.grid(row=0, column=3)

        task_btns = ttk.Frame(self)
        task_btns.grid(row=6, column=0, sticky="w", pady=(6, 0))
        self.done_btn = ttk.Button(task_btns, text="Complete task", command=self._complete_task)
        self.later_btn = ttk.Button(task_btns, text="Later", command=self._skip_task)
        self.done_btn.grid(row=0, column=0, padx=(0, 6))
        self.later_btn.grid(row=0, column=1)

    def _update_buttons(self):
        snap = self.timer_service.get_snapshot()
        has_task = snap.current_task_id is not None

        self.start_btn.configure(text="Pause" if snap.is_running else "Start")
        self.start_btn.state(["!disabled"] if (has_task or snap.is_running) else ["disabled"])
        self.reset_btn.state(["disabled"] if snap.is_idle else ["!disabled"])
        self.interrupt_btn.configure(text="Resume work" if snap.in_interruption else "Interrupt")
        for b in (self.done_btn, self.later_btn):
            b.state(["!disabled"] if has_task else ["disabled"])

    # ---- actions ----
    def _toggle(self):
        self.timer_service.toggle()
        self.on_request_refresh()

    def _skip(self):
        self.timer_service.skip_phase()
        self.on_request_refresh()

    def _reset(self):
        self.timer_service.reset()
        self.on_request_refresh()

    def _interrupt(self):
        self.timer_service.toggle_interruption()
        self._update_buttons()

    def _complete_task(self):
        self.timer_service.complete_current_task()
        self.on_request_refresh()

    def _skip_task(self):
        self.timer_service.skip_current_task()
        self.on_request_refresh()

    def _on_foreground(self, _event=None):
        self.timer_service.engine.on_foreground()

    def _on_background(self, _event=None):
        self.timer_service.engine.on_background()

    # ---- Service callbacks ----
    def _on_tick(self, snap: EngineSnapshot):
        self._render(snap)
        self._update_buttons()

    def _on_phase_change(self, snap: EngineSnapshot):
        self.info_var.set("Back to work." if snap.phase == Phase.WORK else "Break time.")
        self._render(snap, keep_info=True)
        self._update_buttons()
        self.on_request_refresh()

    def _on_state_change(self, snap: EngineSnapshot):
        self._render(snap)
        self._update_buttons()
        self.on_request_refresh()

    def _render(self, snap: EngineSnapshot, keep_info: bool = False):
        self.time_var.set(format_time(snap.remaining_sec))
        self.phase_var.set(PHASE_LABELS.get(snap.phase, snap.phase.value))
        if snap.phase == Phase.LONG_BREAK:
            self.cycle_var.set("")
        else:
            self.cycle_var.set(f"{snap.session_count + 1} / {snap.cycles_until_long_break}")

        if keep_info:
            return
        if snap.in_interruption:
            self.info_var.set(f"Interrupted {format_time(snap.interruption_sec)}")
        elif snap.current_task_id is None:
            self.info_var.set("Add a task to start")
        elif snap.is_idle:
            self.info_var.set("Ready")
        elif snap.is_running:
            self.info_var.set("Running...")
        else:
            self.info_var.set("Paused")
