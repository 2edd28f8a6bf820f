"""
Task creation helpers: hierarchical display names, project cloning and
end-date calculation.
"""
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Sequence
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from .models import Task, TaskStatus, MAX_ASSIGNEES
from .graph import find_task, core_tasks
from .results import TaskCreation, NotFound, ValidationFailed
from .logs import get_logger

log = get_logger("naming")

IdFactory = Callable[[], str]

def new_task_id() -> str:
    return f"task-{uuid4().hex[:12]}"

class TaskDraft(BaseModel):
    """A task as entered by the user, before it has an id or a number."""

    name: str = Field(min_length=1, description="Raw task name, without its number")
    description: str = Field(default="", description="Free text description of the work")
    start_date: Optional[date] = Field(default=None, description="Planned start date")
    end_date: Optional[date] = Field(default=None, description="Planned end date")
    assigned_to: List[str] = Field(default_factory=list, description="Ids of the members working on the task")
    assigned_by: Optional[str] = Field(default=None, description="Id of the member creating the task")
    dependency_id: Optional[str] = Field(default=None, description="Id of the task this one waits on")
    parent_id: Optional[str] = Field(default=None, description="Id of the core task, for sub-tasks")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("Task name cannot be blank")
        return v.strip()

    @field_validator('assigned_to')
    @classmethod
    def validate_assignees(cls, v):
        # Keep the first picks, as the assignee picker does
        return list(dict.fromkeys(v))[:MAX_ASSIGNEES]

    @model_validator(mode='after')
    def validate_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

def assign_display_name(new_task, existing_tasks: Sequence[Task]) -> str:
    """
    Number a new task's name from its position in the project.

    Core tasks become "N. name", N being one more than the number of core
    tasks already present. Sub-tasks become "P.M. name", P being the 1-based
    position of the parent among the core tasks and M one more than the
    parent's current number of sub-tasks. Numbers are never reassigned later.
    """
    cores = core_tasks(existing_tasks)
    if new_task.parent_id is None:
        return f"{len(cores) + 1}. {new_task.name}"

    parent_number = next((i for i, t in enumerate(cores, start=1) if t.id == new_task.parent_id), 0)
    sibling_count = sum(1 for t in existing_tasks if t.parent_id == new_task.parent_id)
    return f"{parent_number}.{sibling_count + 1}. {new_task.name}"

def create_task(draft: TaskDraft, project_tasks: Sequence[Task], id_factory: IdFactory = None) -> TaskCreation:
    """
    Build a fully-formed OPEN task from a draft.

    The parent, if any, must be a core task of the project, and the
    dependency must be a task of the project. The caller is responsible for
    adding the returned task to the project.
    """
    id_factory = id_factory or new_task_id

    if draft.parent_id is not None:
        parent = find_task(draft.parent_id, project_tasks)
        if parent is None:
            return TaskCreation.reject(NotFound(kind="task", id=draft.parent_id))
        if not parent.is_core:
            return TaskCreation.reject(ValidationFailed(
                field="parent_id", detail=f'"{parent.name}" is a sub-task and cannot have sub-tasks'
            ))

    if draft.dependency_id is not None and find_task(draft.dependency_id, project_tasks) is None:
        return TaskCreation.reject(NotFound(kind="task", id=draft.dependency_id))

    task = Task(
        id=id_factory(),
        name=assign_display_name(draft, project_tasks),
        description=draft.description,
        status=TaskStatus.OPEN,
        start_date=draft.start_date,
        end_date=draft.end_date,
        assigned_to=draft.assigned_to,
        assigned_by=draft.assigned_by,
        dependency_id=draft.dependency_id,
        parent_id=draft.parent_id,
        revision=0,
    )
    log.debug(f"Created task {task.id} as '{task.name}'")
    return TaskCreation(task=task)

def clone_project_tasks(source_tasks: Sequence[Task], id_factory: IdFactory = None) -> List[Task]:
    """
    Copy a project's tasks for use in a new project.

    Every task gets a fresh id; parent and dependency references are
    translated to the new ids, and references leading outside the copied
    set are dropped. Assignment, ownership, revision and dates are cleared.
    """
    id_factory = id_factory or new_task_id
    id_map: Dict[str, str] = {t.id: id_factory() for t in source_tasks}

    cloned = []
    for task in source_tasks:
        cloned.append(task.model_copy(update={
            "id": id_map[task.id],
            "parent_id": id_map.get(task.parent_id) if task.parent_id else None,
            "dependency_id": id_map.get(task.dependency_id) if task.dependency_id else None,
            "assigned_to": [],
            "assigned_by": None,
            "revision": 0,
            "start_date": None,
            "end_date": None,
        }))
    log.debug(f"Cloned {len(cloned)} task(s)")
    return cloned

def calculate_end_date(start_date: date, duration_days: int, weekdays_only: bool = False) -> date:
    """
    End date of a task lasting ``duration_days`` days, the start day included.

    With ``weekdays_only`` only Monday to Friday count towards the duration.
    """
    if duration_days <= 0:
        return start_date

    if not weekdays_only:
        return start_date + timedelta(days=duration_days - 1)

    current = start_date
    days_added = 0
    while days_added < duration_days - 1:
        current += timedelta(days=1)
        if current.weekday() < 5:
            days_added += 1
    return current
