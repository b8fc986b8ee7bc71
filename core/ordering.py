# -*- coding: utf-8 -*-

"""
Execution order and sorting over a task list snapshot.

Execution order: a task's subtasks come before it (deepest first).
Hierarchy order: a parent comes before its children (display / export).
"""

from typing import Dict, Iterable, List, Optional, Set

from domain.models import Task


def children_index(tasks: Iterable[Task]) -> Dict[Optional[str], List[Task]]:
    """parent_id -> direct children, in list order."""
    out: Dict[Optional[str], List[Task]] = {}
    for t in tasks:
        out.setdefault(t.parent_id, []).append(t)
    return out


def count_descendants(
    task_id: str,
    children: Dict[Optional[str], List[Task]],
    _seen: Optional[Set[str]] = None,
) -> int:
    seen = _seen if _seen is not None else {task_id}
    count = 0
    for child in children.get(task_id, []):
        if child.id in seen:
            continue
        seen.add(child.id)
        count += 1 + count_descendants(child.id, children, seen)
    return count


def subtasks_in_execution_order(
    task_id: str,
    children: Dict[Optional[str], List[Task]],
    _seen: Optional[Set[str]] = None,
) -> List[Task]:
    seen = _seen if _seen is not None else {task_id}
    result: List[Task] = []
    for child in children.get(task_id, []):
        if child.id in seen:
            continue
        seen.add(child.id)
        # grandchildren first
        result.extend(subtasks_in_execution_order(child.id, children, seen))
        result.append(child)
    return result


def sort_tasks(tasks: List[Task], ascending: bool = False) -> List[Task]:
    """
    Sort incomplete root groups by priority (high first unless ascending),
    ties broken by fewer total subtasks first. Each root is preceded by its
    subtree in execution order. Orphaned incomplete subtasks follow the
    groups; completed tasks keep their relative order at the end.
    """
    incomplete = [t for t in tasks if not t.completed]
    completed = [t for t in tasks if t.completed]
    children = children_index(incomplete)

    def root_key(t: Task):
        pr = int(t.priority) if ascending else -int(t.priority)
        return (pr, count_descendants(t.id, children))

    roots = sorted((t for t in incomplete if t.is_root), key=root_key)

    ordered: List[Task] = []
    placed: Set[str] = set()
    for root in roots:
        for t in subtasks_in_execution_order(root.id, children):
            if t.id not in placed:
                ordered.append(t)
                placed.add(t.id)
        ordered.append(root)
        placed.add(root.id)

    orphans = [t for t in incomplete if t.id not in placed]
    return ordered + orphans + completed


def hierarchy_order(tasks: List[Task], include_completed: bool = True) -> List[Task]:
    """
    Parent-before-children traversal from the roots, in list order.
    With include_completed, tasks unreachable from a root are appended.
    """
    pool = tasks if include_completed else [t for t in tasks if not t.completed]
    children = children_index(pool)

    result: List[Task] = []
    seen: Set[str] = set()

    def visit(t: Task) -> None:
        seen.add(t.id)
        result.append(t)
        for child in children.get(t.id, []):
            if child.id not in seen:
                visit(child)

    for t in pool:
        if t.is_root and t.id not in seen:
            visit(t)

    if include_completed:
        result.extend(t for t in pool if t.id not in seen)
    return result
