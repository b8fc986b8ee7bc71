# -*- coding: utf-8 -*-

from __future__ import annotations

import dataclasses
import time
from typing import Dict, Iterable, List, Optional, Tuple

from core import ordering
from domain.models import Priority, Task


class TaskTree:
    """
    Ordered, hierarchical task list.

    Storage is an id index plus an explicit id sequence. The sequence is the
    execution order (children before their parent) and is data, not derived:
    every operation below keeps it consistent.

    Accessors hand out copies; mutate only through the methods.
    """

    def __init__(self, tasks: Optional[Iterable[Task]] = None):
        self._by_id: Dict[str, Task] = {}
        self._order: List[str] = []
        self.current_task_id: Optional[str] = None
        self.last_modified: float = time.time()
        for t in tasks or []:
            if t.id not in self._by_id:
                self._by_id[t.id] = dataclasses.replace(t)
                self._order.append(t.id)

    # ---- read ----
    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._by_id

    @property
    def tasks(self) -> List[Task]:
        return [dataclasses.replace(self._by_id[i]) for i in self._order]

    def get(self, task_id: str) -> Optional[Task]:
        t = self._by_id.get(task_id)
        return dataclasses.replace(t) if t else None

    @property
    def next_task(self) -> Optional[Task]:
        for i in self._order:
            if not self._by_id[i].completed:
                return self.get(i)
        return None

    @property
    def current_task(self) -> Optional[Task]:
        """Selected task if still open, else the first incomplete one."""
        cur = self._by_id.get(self.current_task_id or "")
        if cur is not None and not cur.completed:
            return self.get(cur.id)
        return self.next_task

    def stats(self) -> Tuple[int, int, int]:
        """(completed, total, pomodoros)"""
        tasks = self._by_id.values()
        completed = sum(1 for t in tasks if t.completed)
        pomodoros = sum(t.pomodoro_count for t in tasks)
        return completed, len(self._order), pomodoros

    # ---- hierarchy helpers ----
    def _children(self, parent_id: str) -> List[Task]:
        return [self._by_id[i] for i in self._order if self._by_id[i].parent_id == parent_id]

    def subtask_ids(self, task_id: str) -> List[str]:
        """All descendants, deepest first (execution order)."""
        return [t.id for t in ordering.subtasks_in_execution_order(
            task_id, ordering.children_index(self._by_id[i] for i in self._order)
        )]

    def ancestor_ids(self, task_id: str) -> List[str]:
        """Ancestors nearest-first."""
        out: List[str] = []
        t = self._by_id.get(task_id)
        while t is not None and t.parent_id and len(out) < len(self._order):
            out.append(t.parent_id)
            t = self._by_id.get(t.parent_id)
        return out

    def is_descendant(self, task_id: str, ancestor_id: str) -> bool:
        return ancestor_id in self.ancestor_ids(task_id)

    def root_of(self, task_id: str) -> Optional[Task]:
        t = self._by_id.get(task_id)
        if t is None:
            return None
        chain = self.ancestor_ids(task_id)
        root = self._by_id.get(chain[-1]) if chain else t
        if root is None or not root.is_root:
            return None
        return self.get(root.id)

    def hierarchy_order(self, include_completed: bool = False) -> List[Task]:
        return ordering.hierarchy_order(self.tasks, include_completed=include_completed)

    # ---- mutations ----
    def _touch(self) -> None:
        self.last_modified = time.time()

    def _insert_index(self, priority: Priority) -> int:
        for idx, tid in enumerate(self._order):
            t = self._by_id[tid]
            if not t.completed and t.is_root and int(t.priority) < int(priority):
                return idx
        for idx, tid in enumerate(self._order):
            if self._by_id[tid].completed:
                return idx
        return len(self._order)

    def add(
        self,
        title: str,
        priority: Priority = Priority.MEDIUM,
        parent_id: Optional[str] = None,
    ) -> Task:
        parent = self._by_id.get(parent_id) if parent_id else None
        task = Task(
            title=title,
            priority=priority,
            parent_id=parent.id if parent else None,
            indent_level=parent.indent_level + 1 if parent else 0,
        )
        self._by_id[task.id] = task
        if parent is not None:
            self._order.insert(self._order.index(parent.id), task.id)
        else:
            self._order.insert(self._insert_index(priority), task.id)
        self._touch()
        return self.get(task.id)

    def extend(self, tasks: Iterable[Task]) -> int:
        added = 0
        for t in tasks:
            if t.id in self._by_id:
                continue
            self._by_id[t.id] = dataclasses.replace(t)
            self._order.append(t.id)
            added += 1
        if added:
            self._touch()
        return added

    def complete(self, task_id: str) -> bool:
        if task_id not in self._by_id:
            return False
        done = set(self.subtask_ids(task_id)) | {task_id}
        for tid in done:
            self._by_id[tid].completed = True

        # completed group moves to the end, relative order kept
        self._order = [i for i in self._order if i not in done] + [
            i for i in self._order if i in done
        ]
        if self.current_task_id in done:
            self.current_task_id = None
        self._touch()
        return True

    def delete(self, task_id: str) -> bool:
        if task_id not in self._by_id:
            return False
        gone = set(self.subtask_ids(task_id)) | {task_id}
        self._order = [i for i in self._order if i not in gone]
        for tid in gone:
            del self._by_id[tid]
        if self.current_task_id in gone:
            self.current_task_id = None
        self._touch()
        return True

    def _set_descendant_levels(self, task_id: str, base_level: int) -> None:
        for child in self._children(task_id):
            child.indent_level = base_level + 1
            self._set_descendant_levels(child.id, base_level + 1)

    def reparent(self, task_id: str, new_parent_id: str) -> bool:
        """
        Make task_id a subtask of new_parent_id. Refused (False, no change)
        when either id is unknown or new_parent_id lies inside task_id's
        subtree.
        """
        task = self._by_id.get(task_id)
        parent = self._by_id.get(new_parent_id)
        if task is None or parent is None or task_id == new_parent_id:
            return False
        if self.is_descendant(new_parent_id, task_id):
            return False

        task.parent_id = parent.id
        task.indent_level = parent.indent_level + 1
        self._set_descendant_levels(task.id, task.indent_level)

        self._order.remove(task.id)
        self._order.insert(self._order.index(parent.id), task.id)
        self._touch()
        return True

    def _shift_descendant_levels(self, task_id: str, delta: int) -> None:
        for child in self._children(task_id):
            child.indent_level = max(0, child.indent_level + delta)
            self._shift_descendant_levels(child.id, delta)

    def make_root(self, task_id: str) -> bool:
        task = self._by_id.get(task_id)
        if task is None:
            return False
        old_level = task.indent_level
        task.parent_id = None
        task.indent_level = 0
        self._shift_descendant_levels(task.id, -old_level)
        self._touch()
        return True

    def select(self, task_id: str) -> bool:
        t = self._by_id.get(task_id)
        if t is None or t.completed:
            return False
        self.current_task_id = task_id
        return True

    def postpone_current(self) -> Optional[str]:
        """Move the selection to the next incomplete task, wrapping around."""
        cur = self.current_task
        if cur is None:
            return None
        start = self._order.index(cur.id)
        for tid in self._order[start + 1:]:
            if not self._by_id[tid].completed:
                self.current_task_id = tid
                return tid
        first = self.next_task
        self.current_task_id = first.id if first else None
        return self.current_task_id

    def add_pomodoro(self, task_id: str) -> bool:
        t = self._by_id.get(task_id)
        if t is None:
            return False
        t.pomodoro_count += 1
        self._touch()
        return True

    def set_priority(self, task_id: str, priority: Priority) -> bool:
        t = self._by_id.get(task_id)
        if t is None:
            return False
        t.priority = priority
        self._touch()
        return True

    def rename(self, task_id: str, title: str) -> bool:
        t = self._by_id.get(task_id)
        if t is None:
            return False
        t.title = title
        self._touch()
        return True

    def insert_before(self, task_id: str, target_id: str) -> bool:
        if task_id not in self._by_id or target_id not in self._by_id or task_id == target_id:
            return False
        self._order.remove(task_id)
        self._order.insert(self._order.index(target_id), task_id)
        self._touch()
        return True

    def move(self, indices: Iterable[int], destination: int) -> None:
        """Move the tasks at `indices` so they land before `destination`."""
        picked = sorted(set(i for i in indices if 0 <= i < len(self._order)))
        if not picked:
            return
        moving = [self._order[i] for i in picked]
        before = sum(1 for i in picked if i < destination)
        picked_set = set(picked)
        rest = [tid for i, tid in enumerate(self._order) if i not in picked_set]
        at = max(0, min(len(rest), destination - before))
        self._order = rest[:at] + moving + rest[at:]
        self._touch()

    def sort(self, ascending: bool = False) -> None:
        ordered = ordering.sort_tasks(
            [self._by_id[i] for i in self._order], ascending=ascending
        )
        self._order = [t.id for t in ordered]
        self._touch()

    def clear_all(self) -> None:
        self._by_id.clear()
        self._order.clear()
        self.current_task_id = None
        self._touch()

    def clear_completed(self) -> int:
        gone = {i for i in self._order if self._by_id[i].completed}
        self._order = [i for i in self._order if i not in gone]
        for tid in gone:
            del self._by_id[tid]
        # open subtasks of a cleared parent become roots
        for tid in list(self._order):
            if self._by_id[tid].parent_id in gone:
                self.make_root(tid)
        if self.current_task_id in gone:
            self.current_task_id = None
        self._touch()
        return len(gone)
