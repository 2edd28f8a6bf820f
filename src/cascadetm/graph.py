"""
Read-only queries over a flat task list.

Blocking, dependency and parent/sub-task relationships are derived on every
call by scanning the list; nothing is cached and nothing is mutated.
"""
from typing import Iterable, List, Optional

from .models import Task, TaskStatus, OPEN_STATUSES

def find_task(task_id: Optional[str], all_tasks: Iterable[Task]) -> Optional[Task]:
    """Find a task by id."""
    if task_id is None:
        return None
    return next((t for t in all_tasks if t.id == task_id), None)

def core_tasks(all_tasks: Iterable[Task]) -> List[Task]:
    """Tasks without a parent, in list order."""
    return [t for t in all_tasks if t.is_core]

def is_blocked(task: Task, all_tasks: Iterable[Task]) -> bool:
    """True if the task depends on a task that is still OPEN or WIP."""
    if not task.dependency_id:
        return False
    dependency = find_task(task.dependency_id, all_tasks)
    return dependency is not None and dependency.status in OPEN_STATUSES

def dependents_of(task: Task, all_tasks: Iterable[Task]) -> List[Task]:
    """Every task whose dependency is the given task, whatever its status."""
    return [t for t in all_tasks if t.dependency_id == task.id]

def blocking_tasks(task: Task, all_tasks: Iterable[Task]) -> List[Task]:
    """
    Tasks held back by the given task.

    A task only blocks its dependents while it is not CLOSED, so a CLOSED
    task blocks nothing.
    """
    if task.status == TaskStatus.CLOSED:
        return []
    return dependents_of(task, all_tasks)

def subtasks_of(task: Task, all_tasks: Iterable[Task]) -> List[Task]:
    """Sub-tasks of a core task, in list order."""
    return [t for t in all_tasks if t.parent_id == task.id]

def query_blocked(all_tasks: Iterable[Task]) -> List[Task]:
    """All tasks currently waiting on an unfinished dependency."""
    tasks = list(all_tasks)
    return [t for t in tasks if is_blocked(t, tasks)]

def filter_by_status(all_tasks: Iterable[Task], statuses: Iterable[TaskStatus]) -> List[Task]:
    """
    Filter a task list by status.

    An empty filter keeps every task. A sub-task is also kept when its
    parent's status matches, so a matching core task keeps its children
    visible.
    """
    tasks = list(all_tasks)
    wanted = set(statuses)
    if not wanted:
        return tasks

    result = []
    for task in tasks:
        if task.parent_id:
            parent = find_task(task.parent_id, tasks)
            if parent is not None and parent.status in wanted:
                result.append(task)
                continue
        if task.status in wanted:
            result.append(task)
    return result
