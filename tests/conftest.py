"""Shared fixtures for the cascadetm test suite."""

import os
import tempfile

# Keep test runs from writing into the user's log directory
os.environ.setdefault("CASCADETM_LOG_DIR", tempfile.mkdtemp(prefix="cascadetm-logs-"))

from datetime import datetime, timezone

import pytest

from cascadetm.models import Project, ProjectStage, Task, TaskStatus


NOW = datetime(2026, 1, 5, 9, 30, tzinfo=timezone.utc)


def make_task(task_id, status=TaskStatus.OPEN, **kwargs):
    """Build a task with sensible defaults for tests."""
    kwargs.setdefault("name", f"Task {task_id}")
    return Task(id=task_id, status=status, **kwargs)


def make_project(*tasks, project_id="proj-1", name="Harbour Pavilion", **kwargs):
    kwargs.setdefault("stage", ProjectStage.DESIGN)
    kwargs.setdefault("project_lead", "mem-1")
    kwargs.setdefault("design_captain", "mem-2")
    return Project(id=project_id, name=name, tasks=list(tasks), **kwargs)


@pytest.fixture
def now():
    return NOW
