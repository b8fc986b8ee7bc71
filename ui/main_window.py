# -*- coding: utf-8 -*-

import logging
import tkinter as tk
from tkinter import messagebox, ttk
from typing import Dict, Optional

from tkinterweb import HtmlFrame

from domain.models import Priority
from services.stats_service import StatsService
from services.task_service import TaskService
from services.timer_service import TimerService
from ui.pomodoro_widget import PomodoroWidget

logger = logging.getLogger(__name__)

PRIORITY_CHOICES = ("!!!", "!!", "!")


def _fmt_hms(sec: int) -> str:
    sec = max(0, int(sec))
    h = sec // 3600
    m = (sec % 3600) // 60
    s = sec % 60
    if h > 0:
        return f"{h}h {m:02d}m"
    return f"{m}m {s:02d}s"


class TkClipboard:
    """Clipboard port over the Tk selection."""

    def __init__(self, root: tk.Misc):
        self.root = root

    def get_text(self) -> Optional[str]:
        try:
            return self.root.clipboard_get()
        except tk.TclError:
            return None

    def set_text(self, text: str) -> None:
        self.root.clipboard_clear()
        self.root.clipboard_append(text)


class MainWindow:
    def __init__(
        self,
        root: tk.Tk,
        task_service: TaskService,
        timer_service: TimerService,
        stats_service: StatsService,
    ):
        self.task_service = task_service
        self.timer_service = timer_service
        self.stats_service = stats_service

        self.root = root
        self.root.title("pomotree")
        self.root.geometry("980x520")

        self.clipboard = TkClipboard(root)
        self._list_index_to_task_id: Dict[int, str] = {}

        self._build_ui()
        self.task_service.on_change = self._on_tasks_changed
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)
        self._on_tasks_changed()

    def _build_ui(self):
        root = self.root

        outer = ttk.Frame(root, padding=10)
        outer.pack(fill="both", expand=True)

        outer.columnconfigure(0, weight=2)
        outer.columnconfigure(1, weight=1)
        outer.columnconfigure(2, weight=2)
        outer.rowconfigure(0, weight=1)

        # LEFT: Tasks panel
        left = ttk.Labelframe(outer, text="Tasks", padding=10)
        left.grid(row=0, column=0, sticky="nsew", padx=(0, 10))
        left.columnconfigure(0, weight=1)
        left.rowconfigure(2, weight=1)

        # add task row
        add_row = ttk.Frame(left)
        add_row.grid(row=0, column=0, sticky="ew")
        add_row.columnconfigure(0, weight=1)

        self.new_task_var = tk.StringVar()
        self.new_task_entry = ttk.Entry(add_row, textvariable=self.new_task_var)
        self.new_task_entry.grid(row=0, column=0, sticky="ew")
        self.new_task_entry.bind("<Return>", lambda e: self._add_task())

        self.priority_var = tk.StringVar(value="!!")
        ttk.Combobox(
            add_row,
            textvariable=self.priority_var,
            values=PRIORITY_CHOICES,
            width=4,
            state="readonly",
        ).grid(row=0, column=1, padx=(6, 0))
        self.as_subtask_var = tk.BooleanVar(value=False)
        ttk.Checkbutton(add_row, text="sub", variable=self.as_subtask_var).grid(
            row=0, column=2, padx=(6, 0)
        )
        ttk.Button(add_row, text="Add", command=self._add_task).grid(
            row=0, column=3, padx=(6, 0)
        )

        self.err_var = tk.StringVar(value="")
        ttk.Label(left, textvariable=self.err_var, foreground="red").grid(
            row=1, column=0, sticky="w", pady=(6, 6)
        )

        # listbox
        self.task_list = tk.Listbox(left, height=14, activestyle="none")
        self.task_list.grid(row=2, column=0, sticky="nsew")
        self.task_list.bind("<<ListboxSelect>>", self._on_select_task)

        # actions
        actions = ttk.Frame(left)
        actions.grid(row=3, column=0, sticky="ew", pady=(8, 0))
        for text, cmd in (
            ("Done", self._complete),
            ("Delete", self._delete),
            ("→", self._indent),
            ("←", self._outdent),
            ("Sort", self._sort),
        ):
            ttk.Button(actions, text=text, width=6, command=cmd).pack(side="left", padx=(0, 4))

        io_row = ttk.Frame(left)
        io_row.grid(row=4, column=0, sticky="ew", pady=(6, 0))
        ttk.Button(io_row, text="Paste tasks", command=self._import).pack(side="left")
        ttk.Button(io_row, text="Copy tasks", command=self._export).pack(side="left", padx=(6, 0))
        ttk.Button(io_row, text="Clear done", command=self._clear_completed).pack(side="right")

        # MIDDLE: Pomodoro + Stats
        middle = ttk.Frame(outer)
        middle.grid(row=0, column=1, sticky="nsew", padx=(0, 10))
        middle.columnconfigure(0, weight=1)
        middle.rowconfigure(1, weight=1)

        self.pomodoro = PomodoroWidget(
            middle,
            timer_service=self.timer_service,
            on_request_refresh=self._refresh_stats_only,
        )
        self.pomodoro.grid(row=0, column=0, sticky="ew")

        stats = ttk.Labelframe(middle, text="Stats", padding=10)
        stats.grid(row=1, column=0, sticky="nsew", pady=(10, 0))
        stats.columnconfigure(0, weight=1)

        self.stats_var = tk.StringVar(value="")
        ttk.Label(stats, textvariable=self.stats_var, font=("Sans", 11)).grid(
            row=0, column=0, sticky="w"
        )

        self.active_var = tk.StringVar(value="Current task: (none)")
        ttk.Label(stats, textvariable=self.active_var, wraplength=220).grid(
            row=1, column=0, sticky="w", pady=(8, 0)
        )

        # RIGHT: rendered export
        preview = ttk.Labelframe(outer, text="Preview", padding=6)
        preview.grid(row=0, column=2, sticky="nsew")
        self.preview = HtmlFrame(preview, horizontal_scrollbar="auto")
        self.preview.pack(fill="both", expand=True)

    def run(self):
        self.root.mainloop()

    def _on_close(self):
        self.timer_service.close()
        self.root.destroy()

    # ----- selection -----
    def _selected_task_id(self) -> Optional[str]:
        sel = self.task_list.curselection()
        if not sel:
            return None
        return self._list_index_to_task_id.get(int(sel[0]))

    def _on_select_task(self, event=None):
        task_id = self._selected_task_id()
        if task_id and self.task_service.select_task(task_id):
            self.timer_service.sync_current_task()
        self._refresh_stats_only()

    # ----- UI actions -----
    def _run(self, fn, *args):
        try:
            fn(*args)
            self.err_var.set("")
        except ValueError as e:
            self.err_var.set(str(e))

    def _add_task(self):
        parent = self._selected_task_id() if self.as_subtask_var.get() else None
        title = self.new_task_var.get()

        def add():
            self.task_service.add_task(title, self.priority_var.get(), parent)
            self.new_task_var.set("")

        self._run(add)

    def _complete(self):
        task_id = self._selected_task_id()
        if not task_id:
            return
        cur = self.task_service.current_task
        if cur is not None and cur.id == task_id:
            self.timer_service.complete_current_task()
        else:
            self._run(self.task_service.complete_task, task_id)

    def _delete(self):
        task_id = self._selected_task_id()
        if task_id:
            self._run(self.task_service.delete_task, task_id)

    def _indent(self):
        task_id = self._selected_task_id()
        if task_id:
            self._run(self.task_service.indent_task, task_id)

    def _outdent(self):
        task_id = self._selected_task_id()
        if task_id:
            self._run(self.task_service.make_root, task_id)

    def _sort(self):
        self.task_service.sort()

    def _import(self):
        n = self.task_service.import_from_clipboard(self.clipboard)
        self.err_var.set("" if n else "Nothing to import.")

    def _export(self):
        self.task_service.export_to_clipboard(self.clipboard)

    def _clear_completed(self):
        if messagebox.askyesno("Clear completed", "Delete all completed tasks?"):
            self.task_service.clear_completed()

    # ----- Refresh -----
    def _on_tasks_changed(self):
        self.timer_service.sync_current_task()
        self._refresh_tasks_only()
        self._refresh_preview()
        self._refresh_stats_only()

    def _refresh_tasks_only(self):
        rows = self.task_service.hierarchy(include_completed=True)
        current = self.task_service.current_task
        current_id = current.id if current else None

        self.task_list.delete(0, tk.END)
        self._list_index_to_task_id.clear()

        for i, t in enumerate(rows):
            mark = "☑" if t.completed else ("▶" if t.id == current_id else "☐")
            prio = f" {t.priority.symbol}" if t.is_root and t.priority != Priority.MEDIUM else ""
            pomos = f"  ({t.pomodoro_count}🍅)" if t.pomodoro_count else ""
            self.task_list.insert(tk.END, f"{'    ' * t.indent_level}{mark} {t.title}{prio}{pomos}")
            self._list_index_to_task_id[i] = t.id
            if t.id == current_id:
                self.task_list.selection_set(i)
                self.task_list.activate(i)

    def _refresh_preview(self):
        html = self.task_service.export_html()
        try:
            self.preview.load_html(html)
        except tk.TclError:
            logger.warning("preview render failed", exc_info=True)

    def _refresh_stats_only(self):
        s = self.stats_service.summary()
        lines = [
            f"Tasks: {s['completed']}/{s['total']}  ({s['pomodoros']}🍅)",
            f"Interruptions today: {_fmt_hms(s['interruption_today_sec'])}",
        ]
        by_type = s["interruptions_today"]
        if by_type:
            lines.append(", ".join(f"{k} ×{v}" for k, v in sorted(by_type.items())))
        self.stats_var.set("\n".join(lines))

        cur = self.task_service.current_task
        if cur is not None:
            credited = self.stats_service.focus_pomodoros(cur.id)
            live = self.timer_service.engine.elapsed_pomodoros(cur.id)
            self.active_var.set(f"Current task: {cur.title}\nFocus: {credited + live:.2f} 🍅")
        else:
            self.active_var.set("Current task: (none)")
