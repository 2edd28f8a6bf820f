from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from datetime import date, datetime
from enum import Enum
from typing import Optional, List, Dict

class TaskStatus(Enum):
    OPEN = "OPEN"
    WIP = "WIP"
    CLOSED = "CLOSED"

    @classmethod
    def parse(cls, value: str) -> 'TaskStatus':
        """Parse a status string, accepting any case."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            valid = ", ".join(s.value for s in cls)
            raise ValueError(f"Invalid status '{value}'. Valid statuses: {valid}")

class ProjectStage(Enum):
    PITCH = "Pitch"
    DESIGN = "Design"
    CONSTRUCTION = "Construction"
    HANDOVER = "Handover"

    @classmethod
    def parse(cls, value: str) -> 'ProjectStage':
        """Parse a stage name, accepting any case."""
        if isinstance(value, cls):
            return value
        for stage in cls:
            if stage.value.lower() == str(value).strip().lower():
                return stage
        valid = ", ".join(s.value for s in cls)
        raise ValueError(f"Invalid stage '{value}'. Valid stages: {valid}")

OPEN_STATUSES = (TaskStatus.OPEN, TaskStatus.WIP)
MAX_ASSIGNEES = 4

class Member(BaseModel):
    """A person who can own, be assigned to, or change tasks."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Opaque unique identifier of the member")
    name: str = Field(min_length=1, description="Display name of the member")

class Task(BaseModel):
    """A unit of work inside a project. Core tasks have no parent; sub-tasks point at a core task."""

    id: str = Field(min_length=1, description="Unique identifier, stable for the task's lifetime")
    name: str = Field(description="Display name, numbered when the task is created")
    description: str = Field(default="", description="Free text description of the work")
    status: TaskStatus = Field(default=TaskStatus.OPEN, description="Current status of the task")
    start_date: Optional[date] = Field(default=None, description="Planned start date")
    end_date: Optional[date] = Field(default=None, description="Planned end date")
    assigned_to: List[str] = Field(
        default_factory=list,
        description="Ids of the members working on the task"
    )
    assigned_by: Optional[str] = Field(default=None, description="Id of the member who created and owns the task")
    dependency_id: Optional[str] = Field(
        default=None,
        description="Id of a task that must be CLOSED before this one can be CLOSED"
    )
    parent_id: Optional[str] = Field(default=None, description="Id of the core task this sub-task belongs to")
    revision: int = Field(default=0, ge=0, description="Number of times the task was reopened after being closed")

    @field_validator('assigned_to')
    @classmethod
    def validate_assignees(cls, v):
        if len(v) > MAX_ASSIGNEES:
            raise ValueError(f"A task can be assigned to at most {MAX_ASSIGNEES} members")
        if len(set(v)) != len(v):
            raise ValueError("assigned_to contains duplicate members")
        return v

    @model_validator(mode='after')
    def validate_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    @model_validator(mode='after')
    def validate_self_references(self):
        if self.dependency_id is not None and self.dependency_id == self.id:
            raise ValueError(f"Task {self.id} cannot depend on itself")
        if self.parent_id is not None and self.parent_id == self.id:
            raise ValueError(f"Task {self.id} cannot be its own parent")
        return self

    @property
    def is_core(self) -> bool:
        return self.parent_id is None

    @property
    def is_subtask(self) -> bool:
        return self.parent_id is not None

class Project(BaseModel):
    """A project and the flat collection of its tasks."""

    id: str = Field(min_length=1, description="Unique identifier of the project")
    name: str = Field(description="Display name of the project")
    stage: ProjectStage = Field(default=ProjectStage.PITCH, description="Current stage of the project")
    project_lead: str = Field(description="Member id of the project lead")
    design_captain: str = Field(description="Member id of the design captain")
    tasks: List[Task] = Field(
        default_factory=list,
        description="All core tasks and sub-tasks of the project"
    )

    @model_validator(mode='after')
    def validate_task_graph(self):
        by_id: Dict[str, Task] = {}
        for task in self.tasks:
            if task.id in by_id:
                raise ValueError(f"Duplicate task id in project {self.id}: {task.id}")
            by_id[task.id] = task

        for task in self.tasks:
            if task.dependency_id is not None and task.dependency_id not in by_id:
                raise ValueError(f"Task {task.id} depends on unknown task {task.dependency_id}")
            if task.parent_id is not None:
                parent = by_id.get(task.parent_id)
                if parent is None:
                    raise ValueError(f"Task {task.id} has unknown parent {task.parent_id}")
                if not parent.is_core:
                    raise ValueError(f"Task {task.id} cannot be nested under sub-task {parent.id}")
        return self

    def find_task(self, task_id: str) -> Optional[Task]:
        """Find a task by id."""
        return next((t for t in self.tasks if t.id == task_id), None)

class LogEntry(BaseModel):
    """One recorded status change. Entries are never modified once written."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(description="When the change was committed")
    task_id: str = Field(description="Id of the task whose status changed")
    task_name: str = Field(description="Name of the task at the time of the change")
    project_id: str = Field(description="Id of the project owning the task")
    project_name: str = Field(description="Name of the project at the time of the change")
    previous_status: TaskStatus = Field(description="Status before the change")
    new_status: TaskStatus = Field(description="Status after the change")
    changed_by: str = Field(min_length=1, description="Id of the member who made the change")

class ProjectList(BaseModel):
    """All projects of a workspace."""

    _schema_scope: str = "workspace"
    _schema_filename: str = "projects"

    projects: List[Project] = Field(default_factory=list, description="Projects, newest first")

class MemberList(BaseModel):
    """The member directory of a workspace."""

    _schema_scope: str = "workspace"
    _schema_filename: str = "members"

    members: List[Member] = Field(default_factory=list, description="Members, newest first")

    @model_validator(mode='after')
    def validate_unique_ids(self):
        ids = [m.id for m in self.members]
        if len(set(ids)) != len(ids):
            raise ValueError("Duplicate member id in member list")
        return self

class AuditTrail(BaseModel):
    """The persisted audit log of a workspace."""

    _schema_scope: str = "workspace"
    _schema_filename: str = "logs"

    entries: List[LogEntry] = Field(default_factory=list, description="Log entries in chronological order")
