# tests/test_task_tree.py

from __future__ import annotations

import pytest

from core.task_tree import TaskTree
from domain.models import Priority


def titles(tasks):
    return [t.title for t in tasks]


@pytest.fixture()
def tree() -> TaskTree:
    return TaskTree()


@pytest.fixture()
def family(tree: TaskTree):
    """A with child S, S with child G; plus an unrelated root X."""
    a = tree.add("A")
    s = tree.add("S", parent_id=a.id)
    g = tree.add("G", parent_id=s.id)
    x = tree.add("X")
    return a, s, g, x


def test_roots_are_inserted_by_priority(tree):
    tree.add("A")
    tree.add("B", Priority.HIGH)
    tree.add("C", Priority.LOW)
    tree.add("D", Priority.MEDIUM)
    assert titles(tree.tasks) == ["B", "A", "D", "C"]


def test_new_root_goes_before_completed_tasks(tree):
    done = tree.add("done", Priority.LOW)
    tree.complete(done.id)
    tree.add("fresh", Priority.LOW)
    assert titles(tree.tasks) == ["fresh", "done"]


def test_subtask_goes_right_before_parent(tree):
    a = tree.add("A")
    s1 = tree.add("S1", parent_id=a.id)
    tree.add("S2", parent_id=a.id)
    assert titles(tree.tasks) == ["S1", "S2", "A"]
    assert tree.get(s1.id).indent_level == 1
    assert tree.get(s1.id).parent_id == a.id


def test_unknown_parent_makes_a_root(tree):
    t = tree.add("lost", parent_id="nope")
    assert t.is_root
    assert t.indent_level == 0


def test_accessors_return_copies(tree):
    a = tree.add("A")
    a.title = "changed"
    assert tree.get(a.id).title == "A"


def test_complete_cascades_and_moves_to_end(tree, family):
    a, s, g, x = family
    assert titles(tree.tasks) == ["G", "S", "A", "X"]

    tree.complete(a.id)
    assert titles(tree.tasks) == ["X", "G", "S", "A"]
    assert all(tree.get(i).completed for i in (a.id, s.id, g.id))
    assert not tree.get(x.id).completed


def test_complete_clears_selection_inside_group(tree, family):
    a, s, g, x = family
    tree.select(g.id)
    tree.complete(a.id)
    assert tree.current_task_id is None
    assert tree.current_task.id == x.id


def test_delete_cascades(tree, family):
    a, s, g, x = family
    assert tree.delete(a.id) is True
    assert titles(tree.tasks) == ["X"]
    assert tree.delete("missing") is False


def test_reparent_rejects_cycles(tree, family):
    a, s, g, x = family
    before = tree.tasks

    assert tree.reparent(a.id, g.id) is False
    assert tree.reparent(a.id, a.id) is False
    assert tree.reparent("missing", a.id) is False
    assert tree.tasks == before


def test_reparent_moves_subtree_levels(tree, family):
    a, s, g, x = family
    assert tree.reparent(a.id, x.id) is True
    assert tree.get(a.id).indent_level == 1
    assert tree.get(s.id).indent_level == 2
    assert tree.get(g.id).indent_level == 3
    order = [t.id for t in tree.tasks]
    assert order.index(a.id) < order.index(x.id)


def test_make_root_shifts_descendants(tree, family):
    a, s, g, x = family
    tree.make_root(s.id)
    assert tree.get(s.id).is_root
    assert tree.get(s.id).indent_level == 0
    assert tree.get(g.id).indent_level == 1


def test_ancestors_and_root(tree, family):
    a, s, g, x = family
    assert tree.ancestor_ids(g.id) == [s.id, a.id]
    assert tree.root_of(g.id).id == a.id
    assert tree.is_descendant(g.id, a.id)
    assert not tree.is_descendant(a.id, g.id)


def test_hierarchy_order_hides_completed_by_default(tree, family):
    a, s, g, x = family
    tree.complete(g.id)
    assert titles(tree.hierarchy_order()) == ["A", "S", "X"]
    assert titles(tree.hierarchy_order(include_completed=True)) == ["A", "S", "G", "X"]


def test_select_only_open_tasks(tree):
    a = tree.add("A")
    b = tree.add("B")
    tree.complete(b.id)
    assert tree.select(b.id) is False
    assert tree.select(a.id) is True
    assert tree.current_task.id == a.id


def test_postpone_wraps_around(tree):
    a = tree.add("A")
    b = tree.add("B")
    c = tree.add("C")
    tree.select(b.id)
    assert tree.postpone_current() == c.id
    assert tree.postpone_current() == a.id


def test_add_pomodoro_and_stats(tree):
    a = tree.add("A")
    b = tree.add("B")
    tree.add_pomodoro(a.id)
    tree.add_pomodoro(a.id)
    tree.complete(b.id)
    assert tree.stats() == (1, 2, 2)


def test_insert_before_and_move(tree):
    a = tree.add("A")
    b = tree.add("B")
    c = tree.add("C")
    tree.insert_before(c.id, a.id)
    assert titles(tree.tasks) == ["C", "A", "B"]

    tree.move([0], 3)
    assert titles(tree.tasks) == ["A", "B", "C"]
    tree.move([1, 2], 0)
    assert titles(tree.tasks) == ["B", "C", "A"]


def test_clear_completed_promotes_open_orphans(tree):
    parent = tree.add("P")
    tree.complete(parent.id)
    child = tree.add("late child", parent_id=parent.id)

    assert tree.clear_completed() == 1
    kept = tree.get(child.id)
    assert kept.is_root
    assert kept.indent_level == 0


def test_clear_all(tree, family):
    tree.select(family[0].id)
    tree.clear_all()
    assert len(tree) == 0
    assert tree.current_task is None
