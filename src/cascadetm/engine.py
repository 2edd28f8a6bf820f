"""
Status Transition Engine.

The single authority for changing a task's status. A change is validated,
applied and cascaded on copies of the project's tasks; the input project is
never modified. Either the whole change is accepted, returning the new
project plus the audit entries it produced, or nothing happens and a
rejection reason is returned.
"""
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from .models import Project, Task, TaskStatus, LogEntry, OPEN_STATUSES
from .graph import find_task, subtasks_of, dependents_of
from .results import (
    StatusChange, ValidationFailed, BlockedByDependency, SubtasksIncomplete, NotFound,
)
from .logs import get_logger

log = get_logger("engine")

class TaskEdit(BaseModel):
    """Changes requested from the edit dialog. Unset fields are left alone."""

    name: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    assigned_to: Optional[List[str]] = None
    dependency_id: Optional[str] = None
    clear_dependency: bool = Field(default=False, description="Remove the current dependency")
    status: Optional[TaskStatus] = None

def _now() -> datetime:
    return datetime.now(timezone.utc)

def _entry(project: Project, task: Task, previous: TaskStatus, new: TaskStatus,
           changed_by: str, timestamp: datetime) -> LogEntry:
    return LogEntry(
        timestamp=timestamp,
        task_id=task.id,
        task_name=task.name,
        project_id=project.id,
        project_name=project.name,
        previous_status=previous,
        new_status=new,
        changed_by=changed_by,
    )

def _check_member(acting_member_id: Optional[str]) -> Optional[ValidationFailed]:
    if acting_member_id is None or not str(acting_member_id).strip():
        return ValidationFailed(field="changed_by", detail="select who is making this change")
    return None

def apply_status_change(project: Project, task_id: str, new_status: Union[TaskStatus, str],
                        acting_member_id: str, now: Optional[datetime] = None) -> StatusChange:
    """
    Validate and apply a status change, cascading to sub-tasks and dependents.

    Guards run in a fixed order so a request has exactly one rejection
    reason: dependency first, then sub-task completion.

    Args:
        project: The project owning the task. Not modified.
        task_id: Id of the task to change.
        new_status: Requested status, as a TaskStatus or its name.
        acting_member_id: Id of the member making the change.
        now: Commit timestamp for the log entries. Defaults to the current UTC time.

    Returns:
        A StatusChange holding either the new project and its log entries,
        or the rejection reason.
    """
    invalid = _check_member(acting_member_id)
    if invalid:
        return StatusChange.reject(invalid)

    try:
        new_status = TaskStatus.parse(new_status)
    except ValueError as e:
        return StatusChange.reject(ValidationFailed(field="status", detail=str(e)))

    task = find_task(task_id, project.tasks)
    if task is None:
        return StatusChange.reject(NotFound(kind="task", id=str(task_id)))

    # 1. No-op
    if new_status == task.status:
        log.debug(f"Status of {task.id} already {new_status.value}, nothing to do")
        return StatusChange(project=project)

    closing = new_status == TaskStatus.CLOSED
    reopening = task.status == TaskStatus.CLOSED and new_status in OPEN_STATUSES

    # 2. Dependency guard
    if closing and task.dependency_id:
        dependency = find_task(task.dependency_id, project.tasks)
        if dependency is not None and dependency.status in OPEN_STATUSES:
            log.warning(f"Rejected closing {task.id}: blocked by {dependency.id}")
            return StatusChange.reject(BlockedByDependency(
                task_id=task.id,
                task_name=task.name,
                blocking_task_id=dependency.id,
                blocking_task_name=dependency.name,
            ))

    # 3. Child-completion guard
    if closing and task.is_core:
        open_children = [s for s in subtasks_of(task, project.tasks) if s.status != TaskStatus.CLOSED]
        if open_children:
            log.warning(f"Rejected closing {task.id}: {len(open_children)} open sub-task(s)")
            return StatusChange.reject(SubtasksIncomplete(
                task_id=task.id, task_name=task.name, open_count=len(open_children),
            ))

    timestamp = now or _now()
    entries: List[LogEntry] = []
    updates: Dict[str, Task] = {}

    # 4. Apply
    primary_update = {"status": new_status}
    if reopening:
        primary_update["revision"] = task.revision + 1
    updates[task.id] = task.model_copy(update=primary_update)

    # 5. Cascade close to sub-tasks
    if closing and task.is_core:
        for child in subtasks_of(task, project.tasks):
            if child.status != TaskStatus.CLOSED:
                entries.append(_entry(project, child, child.status, TaskStatus.CLOSED, acting_member_id, timestamp))
                updates[child.id] = child.model_copy(update={"status": TaskStatus.CLOSED})

    # 6. Cascade reopen to dependents
    if reopening:
        for dependent in dependents_of(task, project.tasks):
            if dependent.status == TaskStatus.CLOSED:
                entries.append(_entry(project, dependent, TaskStatus.CLOSED, TaskStatus.OPEN, acting_member_id, timestamp))
                updates[dependent.id] = dependent.model_copy(
                    update={"status": TaskStatus.OPEN, "revision": dependent.revision + 1}
                )

    # 7. Primary entry
    entries.append(_entry(project, task, task.status, new_status, acting_member_id, timestamp))

    new_tasks = [updates.get(t.id, t) for t in project.tasks]
    updated = project.model_copy(update={"tasks": new_tasks})

    log.info(f"{project.id}/{task.id}: {task.status.value} -> {new_status.value} by {acting_member_id}"
             f" ({len(entries) - 1} cascaded)")
    return StatusChange(project=updated, entries=entries)

def _edited_task(project: Project, task: Task, edit: TaskEdit) -> Union[Task, ValidationFailed, NotFound]:
    changes = edit.model_dump(
        exclude_unset=True,
        exclude={"status", "clear_dependency"},
    )
    if edit.clear_dependency:
        changes["dependency_id"] = None
    elif changes.get("dependency_id") is not None:
        dependency_id = changes["dependency_id"]
        if dependency_id == task.id:
            return ValidationFailed(field="dependency_id", detail="a task cannot depend on itself")
        if find_task(dependency_id, project.tasks) is None:
            return NotFound(kind="task", id=dependency_id)
    if "name" in changes and not (changes["name"] or "").strip():
        return ValidationFailed(field="name", detail="name cannot be empty")

    try:
        # Round-trip through the model so field validators run on the result
        return Task.model_validate({**task.model_dump(), **changes})
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or "task"
        return ValidationFailed(field=field, detail=first.get("msg", str(e)))

def apply_task_edit(project: Project, task_id: str, edit: TaskEdit, acting_member_id: str,
                    now: Optional[datetime] = None) -> StatusChange:
    """
    Apply an edit-dialog change: field edits first, then any status request.

    The edit is atomic; a rejected status change discards the field edits too.
    Field-only edits produce no log entries.
    """
    invalid = _check_member(acting_member_id)
    if invalid:
        return StatusChange.reject(invalid)

    task = find_task(task_id, project.tasks)
    if task is None:
        return StatusChange.reject(NotFound(kind="task", id=str(task_id)))

    edited = _edited_task(project, task, edit)
    if not isinstance(edited, Task):
        log.warning(f"Rejected edit of {task.id}: {edited.message}")
        return StatusChange.reject(edited)

    new_tasks = [edited if t.id == task.id else t for t in project.tasks]
    try:
        working = Project.model_validate({**project.model_dump(exclude={"tasks"}), "tasks": new_tasks})
    except PydanticValidationError as e:
        return StatusChange.reject(ValidationFailed(field="dependency_id", detail=e.errors()[0].get("msg", str(e))))

    if edit.status is None:
        log.info(f"{project.id}/{task.id}: fields edited by {acting_member_id}")
        return StatusChange(project=working)

    return apply_status_change(working, task.id, edit.status, acting_member_id, now=now)
