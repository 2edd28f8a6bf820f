"""Tests for the read-only task graph queries."""

from cascadetm.graph import (
    find_task, core_tasks, is_blocked, dependents_of, blocking_tasks,
    subtasks_of, query_blocked, filter_by_status,
)
from cascadetm.models import TaskStatus
from conftest import make_task


OPEN, WIP, CLOSED = TaskStatus.OPEN, TaskStatus.WIP, TaskStatus.CLOSED


class TestRelationships:
    """Test parent, dependency and blocking lookups."""

    def test_find_task(self):
        tasks = [make_task("a"), make_task("b")]
        assert find_task("b", tasks).id == "b"
        assert find_task("zzz", tasks) is None
        assert find_task(None, tasks) is None

    def test_core_tasks_keep_order(self):
        tasks = [make_task("a"), make_task("s", parent_id="a"), make_task("b")]
        assert [t.id for t in core_tasks(tasks)] == ["a", "b"]

    def test_subtasks_of(self):
        tasks = [
            make_task("a"), make_task("b"),
            make_task("a1", parent_id="a"), make_task("b1", parent_id="b"), make_task("a2", parent_id="a"),
        ]
        assert [t.id for t in subtasks_of(tasks[0], tasks)] == ["a1", "a2"]

    def test_is_blocked_follows_dependency_status(self):
        """A task is blocked only while its dependency is OPEN or WIP."""
        for status, expected in [(OPEN, True), (WIP, True), (CLOSED, False)]:
            tasks = [make_task("a", dependency_id="b"), make_task("b", status)]
            assert is_blocked(tasks[0], tasks) is expected

    def test_task_without_dependency_is_not_blocked(self):
        task = make_task("a")
        assert not is_blocked(task, [task])

    def test_dependents_of_ignores_status(self):
        tasks = [
            make_task("d", CLOSED),
            make_task("e", CLOSED, dependency_id="d"),
            make_task("f", WIP, dependency_id="d"),
            make_task("g"),
        ]
        assert [t.id for t in dependents_of(tasks[0], tasks)] == ["e", "f"]

    def test_blocking_tasks(self):
        """An unfinished task blocks its dependents."""
        tasks = [make_task("d", WIP), make_task("e", dependency_id="d")]
        assert [t.id for t in blocking_tasks(tasks[0], tasks)] == ["e"]

    def test_closed_task_blocks_nothing(self):
        tasks = [make_task("d", CLOSED), make_task("e", dependency_id="d")]
        assert blocking_tasks(tasks[0], tasks) == []

    def test_query_blocked(self):
        tasks = [
            make_task("a", dependency_id="b"),
            make_task("b", WIP),
            make_task("c", dependency_id="d"),
            make_task("d", CLOSED),
        ]
        assert [t.id for t in query_blocked(tasks)] == ["a"]


class TestStatusFilter:
    """Test filtering of task lists by status."""

    def setup_method(self):
        self.tasks = [
            make_task("p", WIP),
            make_task("p1", CLOSED, parent_id="p"),
            make_task("p2", OPEN, parent_id="p"),
            make_task("q", CLOSED),
            make_task("q1", OPEN, parent_id="q"),
        ]

    def test_empty_filter_keeps_everything(self):
        assert filter_by_status(self.tasks, []) == self.tasks

    def test_matching_parent_keeps_children(self):
        """Sub-tasks of a matching core task stay visible whatever their status."""
        result = filter_by_status(self.tasks, [WIP])
        assert [t.id for t in result] == ["p", "p1", "p2"]

    def test_subtask_matching_on_its_own(self):
        result = filter_by_status(self.tasks, [OPEN])
        assert [t.id for t in result] == ["p2", "q1"]

    def test_several_statuses(self):
        result = filter_by_status(self.tasks, [CLOSED, WIP])
        assert [t.id for t in result] == ["p", "p1", "p2", "q", "q1"]
