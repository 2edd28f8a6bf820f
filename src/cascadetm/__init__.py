"""
Cascade Task Manager - a project and task tracker with dependency-aware status changes.

Tasks belong to projects, may be split into sub-tasks and may depend on other
tasks. Closing and reopening work cascades through those relationships, and
every status change is recorded in an audit log.
"""

from .version import VERSION, APP_SCHEMA_VERSION
from .models import (
    TaskStatus,
    ProjectStage,
    Member,
    Task,
    Project,
    LogEntry,
)
from .results import (
    StatusChange,
    TaskCreation,
    ValidationFailed,
    BlockedByDependency,
    SubtasksIncomplete,
    NotFound,
)
from .engine import apply_status_change, apply_task_edit, TaskEdit
from .naming import TaskDraft, assign_display_name, create_task, clone_project_tasks
from .audit import AuditLog
from .tracker import Tracker
from .data import DataCore

__version__ = VERSION

__all__ = [
    "VERSION",
    "APP_SCHEMA_VERSION",
    "TaskStatus",
    "ProjectStage",
    "Member",
    "Task",
    "Project",
    "LogEntry",
    "StatusChange",
    "TaskCreation",
    "ValidationFailed",
    "BlockedByDependency",
    "SubtasksIncomplete",
    "NotFound",
    "apply_status_change",
    "apply_task_edit",
    "TaskEdit",
    "TaskDraft",
    "assign_display_name",
    "create_task",
    "clone_project_tasks",
    "AuditLog",
    "Tracker",
    "DataCore",
]
