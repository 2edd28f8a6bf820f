"""
Result values returned by core operations.

Core operations never raise for a rejected request. They return a result
carrying either the new state or one of the rejection reasons below, so a
caller can show ``rejected.message`` to the user.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from .models import Project, Task, LogEntry

class Rejection(BaseModel):
    """Base class for all rejection reasons."""

    model_config = ConfigDict(frozen=True)

    @property
    def message(self) -> str:
        return "Request rejected"

class ValidationFailed(Rejection):
    field: str = Field(description="The input that failed validation")
    detail: str = Field(description="What is wrong with it")

    @property
    def message(self) -> str:
        return f"Invalid {self.field}: {self.detail}"

class BlockedByDependency(Rejection):
    task_id: str
    task_name: str
    blocking_task_id: str
    blocking_task_name: str

    @property
    def message(self) -> str:
        return (f'Cannot close "{self.task_name}" because it depends on '
                f'"{self.blocking_task_name}", which is not closed.')

class SubtasksIncomplete(Rejection):
    task_id: str
    task_name: str
    open_count: int = Field(ge=1, description="Number of sub-tasks that are not CLOSED")

    @property
    def message(self) -> str:
        return (f'Cannot close "{self.task_name}" because {self.open_count} '
                f'sub-task(s) are not yet closed.')

class NotFound(Rejection):
    kind: str = Field(description="What was looked up: project, task or member")
    id: str = Field(description="The id that did not resolve")

    @property
    def message(self) -> str:
        return f"Unknown {self.kind}: {self.id}"

class Outcome(BaseModel):
    """Common shape of a result: ok unless a rejection is attached."""

    rejected: Optional[Rejection] = None

    @property
    def ok(self) -> bool:
        return self.rejected is None

class StatusChange(Outcome):
    """Result of a status change or task edit."""

    project: Optional[Project] = None
    entries: List[LogEntry] = Field(default_factory=list)

    @classmethod
    def reject(cls, reason: Rejection) -> 'StatusChange':
        return cls(rejected=reason)

class TaskCreation(Outcome):
    """Result of creating a task."""

    task: Optional[Task] = None
    project: Optional[Project] = None

    @classmethod
    def reject(cls, reason: Rejection) -> 'TaskCreation':
        return cls(rejected=reason)
