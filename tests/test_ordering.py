# tests/test_ordering.py

from __future__ import annotations

from core import ordering
from domain.models import Priority, Task


def _root(title, priority=Priority.MEDIUM, completed=False):
    return Task(title=title, priority=priority, completed=completed)


def _child(title, parent, completed=False):
    return Task(
        title=title,
        parent_id=parent.id,
        indent_level=parent.indent_level + 1,
        completed=completed,
    )


def titles(tasks):
    return [t.title for t in tasks]


def test_sort_by_priority_descending_and_ascending():
    low, high, mid = _root("low", Priority.LOW), _root("high", Priority.HIGH), _root("mid")
    tasks = [low, high, mid]

    assert titles(ordering.sort_tasks(tasks)) == ["high", "mid", "low"]
    assert titles(ordering.sort_tasks(tasks, ascending=True)) == ["low", "mid", "high"]


def test_subtrees_keep_children_before_parent_in_both_directions():
    a = _root("A", Priority.HIGH)
    a1 = _child("A1", a)
    a1x = _child("A1x", a1)
    a2 = _child("A2", a)
    b = _root("B", Priority.LOW)
    b1 = _child("B1", b)
    tasks = [a1x, a1, a2, a, b1, b]

    desc = ordering.sort_tasks(tasks)
    asc = ordering.sort_tasks(tasks, ascending=True)
    assert titles(desc) == ["A1x", "A1", "A2", "A", "B1", "B"]
    assert titles(asc) == ["B1", "B", "A1x", "A1", "A2", "A"]


def test_ties_prefer_smaller_subtrees():
    big = _root("big", Priority.HIGH)
    kids = [_child(f"k{i}", big) for i in range(2)]
    small = _root("small", Priority.HIGH)
    ordered = ordering.sort_tasks([*kids, big, small])
    assert titles(ordered) == ["small", "k0", "k1", "big"]


def test_completed_tasks_go_last_in_insertion_order():
    done1 = _root("done1", completed=True)
    open1 = _root("open1", Priority.LOW)
    done2 = _root("done2", Priority.HIGH, completed=True)
    assert titles(ordering.sort_tasks([done1, open1, done2])) == ["open1", "done1", "done2"]


def test_count_descendants_survives_a_cycle():
    a = _root("A")
    b = _child("B", a)
    # corrupt data: A claims B as its parent
    a.parent_id = b.id
    children = ordering.children_index([a, b])
    assert ordering.count_descendants(a.id, children) == 1
    assert titles(ordering.subtasks_in_execution_order(a.id, children)) == ["B"]


def test_hierarchy_order_parent_first():
    a = _root("A")
    a1 = _child("A1", a)
    a1x = _child("A1x", a1)
    b = _root("B")
    assert titles(ordering.hierarchy_order([a1x, a1, a, b])) == ["A", "A1", "A1x", "B"]
