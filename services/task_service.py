#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol, Union

from core.task_tree import TaskTree
from core.text_codec import CodecConfig, TextHierarchyCodec
from domain.models import Priority, Task
from storage.repos import Persistence, TaskListStore
from ui.markdown_renderer import MarkdownRenderer

logger = logging.getLogger(__name__)

K_ACTIVE_TASK = "active_task_id"
K_ALLOW_LIST = "importAllowListFormat"
K_INDENT_STYLE = "indentStyle"
K_INDENT_SPACES = "indentSpaces"

PRIORITY_NAMES = {
    "!": Priority.LOW,
    "low": Priority.LOW,
    "!!": Priority.MEDIUM,
    "medium": Priority.MEDIUM,
    "!!!": Priority.HIGH,
    "high": Priority.HIGH,
}


class Clipboard(Protocol):
    def get_text(self) -> Optional[str]: ...
    def set_text(self, text: str) -> None: ...


def parse_priority(raw: Union[Priority, int, str, None]) -> Priority:
    if isinstance(raw, Priority):
        return raw
    if raw is None:
        return Priority.MEDIUM
    if isinstance(raw, int):
        try:
            return Priority(raw)
        except ValueError:
            raise ValueError("Invalid priority. Use 1/2/3.") from None
    pr = PRIORITY_NAMES.get(str(raw).strip().lower())
    if pr is None:
        raise ValueError("Invalid priority. Use ! / !! / !!! (low/medium/high).")
    return pr


class TaskService:
    """
    The task list as the rest of the app sees it: a TaskTree that is saved
    after every change, plus text import/export.
    """

    def __init__(
        self,
        store: TaskListStore,
        state: Optional[Persistence] = None,
        renderer: Optional[MarkdownRenderer] = None,
    ):
        self.store = store
        self.state = state
        self.renderer = renderer or MarkdownRenderer()
        self.tree = TaskTree(store.load())
        # UI refresh hook
        self.on_change: Optional[Callable[[], None]] = None

        if state is not None:
            active = state.get_string(K_ACTIVE_TASK)
            if active:
                self.tree.select(active)

    def _save(self) -> None:
        self.store.save(self.tree.tasks, self.tree.last_modified)
        if self.state is not None:
            if self.tree.current_task_id:
                self.state.set(K_ACTIVE_TASK, self.tree.current_task_id)
            else:
                self.state.remove(K_ACTIVE_TASK)
        if callable(self.on_change):
            try:
                self.on_change()
            except Exception:
                logger.exception("task change hook failed")

    def _require(self, task_id: str) -> Task:
        t = self.tree.get(task_id) if task_id else None
        if t is None:
            raise ValueError("Task not found.")
        return t

    # ---- read ----
    def list_tasks(self) -> List[Task]:
        return self.tree.tasks

    def hierarchy(self, include_completed: bool = False) -> List[Task]:
        return self.tree.hierarchy_order(include_completed=include_completed)

    def get_task(self, task_id: str) -> Optional[Task]:
        return self.tree.get(task_id)

    @property
    def current_task(self) -> Optional[Task]:
        return self.tree.current_task

    def stats(self):
        return self.tree.stats()

    # ---- tasks ----
    def add_task(
        self,
        title: str,
        priority: Union[Priority, int, str, None] = Priority.MEDIUM,
        parent_id: Optional[str] = None,
    ) -> Task:
        title = (title or "").strip()
        if not title:
            raise ValueError("Task title cannot be empty.")
        pr = parse_priority(priority)
        if parent_id:
            self._require(parent_id)
        task = self.tree.add(title, pr, parent_id)
        self._save()
        return task

    def rename_task(self, task_id: str, title: str) -> None:
        title = (title or "").strip()
        if not title:
            raise ValueError("Name cannot be empty.")
        self._require(task_id)
        self.tree.rename(task_id, title)
        self._save()

    def set_priority(self, task_id: str, priority: Union[Priority, int, str]) -> None:
        pr = parse_priority(priority)
        self._require(task_id)
        self.tree.set_priority(task_id, pr)
        self._save()

    def complete_task(self, task_id: str) -> None:
        self._require(task_id)
        self.tree.complete(task_id)
        self._save()

    def delete_task(self, task_id: str) -> None:
        self._require(task_id)
        self.tree.delete(task_id)
        self._save()

    def make_subtask(self, task_id: str, parent_id: str) -> None:
        self._require(task_id)
        self._require(parent_id)
        if not self.tree.reparent(task_id, parent_id):
            raise ValueError("A task cannot be nested under itself or its subtasks.")
        self._save()

    def make_root(self, task_id: str) -> None:
        self._require(task_id)
        self.tree.make_root(task_id)
        self._save()

    def indent_task(self, task_id: str) -> bool:
        """Nest under the closest open root above it in display order."""
        self._require(task_id)
        rows = self.hierarchy(include_completed=False)
        ids = [t.id for t in rows]
        if task_id not in ids:
            return False
        for t in reversed(rows[: ids.index(task_id)]):
            if t.is_root and t.id != task_id and not self.tree.is_descendant(t.id, task_id):
                if self.tree.reparent(task_id, t.id):
                    self._save()
                    return True
                break
        return False

    def select_task(self, task_id: str) -> bool:
        ok = self.tree.select(task_id)
        if ok:
            self._save()
        return ok

    def postpone_current(self) -> Optional[str]:
        nxt = self.tree.postpone_current()
        self._save()
        return nxt

    def add_pomodoro(self, task_id: Optional[str] = None) -> bool:
        if task_id is None:
            cur = self.tree.current_task
            task_id = cur.id if cur else None
        if not task_id or not self.tree.add_pomodoro(task_id):
            return False
        self._save()
        return True

    def insert_before(self, task_id: str, target_id: str) -> None:
        self._require(task_id)
        self._require(target_id)
        if self.tree.insert_before(task_id, target_id):
            self._save()

    def move(self, indices: List[int], destination: int) -> None:
        self.tree.move(indices, destination)
        self._save()

    def sort(self, ascending: bool = False) -> None:
        self.tree.sort(ascending=ascending)
        self._save()

    def clear_all(self) -> None:
        self.tree.clear_all()
        self._save()

    def clear_completed(self) -> int:
        n = self.tree.clear_completed()
        self._save()
        return n

    # ---- import / export ----
    def codec_config(self) -> CodecConfig:
        if self.state is None:
            return CodecConfig()
        style = self.state.get_string(K_INDENT_STYLE) or "spaces"
        return CodecConfig(
            allow_list_format=bool(self.state.get_bool(K_ALLOW_LIST)),
            indent_style="tab" if style == "tab" else "spaces",
            indent_spaces=self.state.get_int(K_INDENT_SPACES) or 2,
        )

    def set_codec_config(self, cfg: CodecConfig) -> None:
        if cfg.indent_style not in ("spaces", "tab"):
            raise ValueError("Invalid indent style. Use spaces/tab.")
        if cfg.indent_spaces < 1:
            raise ValueError("Indent width must be at least 1.")
        if self.state is None:
            return
        self.state.set(K_ALLOW_LIST, cfg.allow_list_format)
        self.state.set(K_INDENT_STYLE, cfg.indent_style)
        self.state.set(K_INDENT_SPACES, cfg.indent_spaces)

    def import_text(self, text: str) -> int:
        """Append parsed tasks, re-sort, return how many were added."""
        parsed = TextHierarchyCodec(self.codec_config()).decode(text or "")
        if not parsed:
            return 0
        self.tree.extend(parsed)
        self.tree.sort()
        self._save()
        logger.info("imported %s task(s)", len(parsed))
        return len(parsed)

    def export_text(self) -> str:
        return TextHierarchyCodec(self.codec_config()).encode(self.tree.tasks)

    def import_from_clipboard(self, clipboard: Clipboard) -> int:
        text = clipboard.get_text()
        if not text:
            return 0
        return self.import_text(text)

    def export_to_clipboard(self, clipboard: Clipboard) -> str:
        text = self.export_text()
        clipboard.set_text(text)
        return text

    def export_html(self) -> str:
        return self.renderer.to_html(self.export_text())
