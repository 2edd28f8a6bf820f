"""
Tracker - the owned state object and the entry point used by the CLI.

A Tracker wires the project repository, the member directory and the audit
log together. Every status change goes through the engine; when the engine
accepts it, the Tracker commits the new project and appends the log entries
in one step.
"""
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple, Union
from uuid import uuid4

from .models import Member, Project, ProjectStage, Task, TaskStatus, LogEntry
from .engine import apply_status_change, apply_task_edit, TaskEdit
from .graph import find_task, query_blocked, blocking_tasks
from .naming import TaskDraft, create_task, clone_project_tasks
from .repository import ProjectRepository, MemberDirectory
from .audit import AuditLog
from .results import StatusChange, TaskCreation, NotFound
from .summary import Summarizer, ProjectSummary, build_project_summary_input, build_portfolio_summary_input
from .logs import get_logger

log = get_logger("tracker")

class Tracker:
    def __init__(self, projects: ProjectRepository = None, members: MemberDirectory = None,
                 audit: AuditLog = None):
        self.projects = projects if projects is not None else ProjectRepository()
        self.members = members if members is not None else MemberDirectory()
        self.audit = audit if audit is not None else AuditLog()

    # -- members -----------------------------------------------------------

    def add_member(self, name: str, member_id: str = None) -> Member:
        return self.members.add(name, member_id)

    # -- projects ----------------------------------------------------------

    def create_project(self, name: str, stage: Union[ProjectStage, str], project_lead: str,
                       design_captain: str, copy_from: str = None, project_id: str = None) -> Project:
        """
        Create a project, optionally copying the tasks of an existing one.

        Raises:
            ProjectNotFoundError: If ``copy_from`` names an unknown project.
        """
        tasks: List[Task] = []
        if copy_from:
            tasks = clone_project_tasks(self.projects.require(copy_from).tasks)

        project = Project(
            id=project_id or f"proj-{uuid4().hex[:10]}",
            name=name,
            stage=ProjectStage.parse(stage),
            project_lead=project_lead,
            design_captain=design_captain,
            tasks=tasks,
        )
        self.projects.add(project)
        log.info(f"Created project {project.id} '{project.name}' with {len(tasks)} task(s)")
        return project

    def set_stage(self, project_id: str, stage: Union[ProjectStage, str]) -> Optional[Project]:
        """Move a project to any stage. Returns None for an unknown project."""
        project = self.projects.get(project_id)
        if project is None:
            return None
        updated = project.model_copy(update={"stage": ProjectStage.parse(stage)})
        self.projects.save(updated)
        return updated

    def stage_counts(self) -> Dict[ProjectStage, int]:
        counts = {stage: 0 for stage in ProjectStage}
        for project in self.projects.list():
            counts[project.stage] += 1
        return counts

    # -- tasks -------------------------------------------------------------

    def create_task(self, project_id: str, draft: TaskDraft) -> TaskCreation:
        """Create a numbered task and append it to the project."""
        project = self.projects.get(project_id)
        if project is None:
            return TaskCreation.reject(NotFound(kind="project", id=project_id))

        result = create_task(draft, project.tasks)
        if not result.ok:
            return result

        updated = project.model_copy(update={"tasks": [*project.tasks, result.task]})
        self.projects.save(updated)
        log.info(f"Created task {result.task.id} '{result.task.name}' in {project.id}")
        return TaskCreation(task=result.task, project=updated)

    def _commit(self, result: StatusChange) -> StatusChange:
        if result.ok:
            self.projects.save(result.project)
            self.audit.extend(result.entries)
        return result

    def _check_actor(self, project_id: str, acting_member_id: str) -> Tuple[Optional[Project], Optional[StatusChange]]:
        project = self.projects.get(project_id)
        if project is None:
            return None, StatusChange.reject(NotFound(kind="project", id=project_id))
        if acting_member_id and acting_member_id not in self.members:
            return None, StatusChange.reject(NotFound(kind="member", id=acting_member_id))
        return project, None

    def apply_status_change(self, project_id: str, task_id: str, new_status: Union[TaskStatus, str],
                            acting_member_id: str, now: datetime = None) -> StatusChange:
        project, rejected = self._check_actor(project_id, acting_member_id)
        if rejected:
            return rejected
        return self._commit(apply_status_change(project, task_id, new_status, acting_member_id, now=now))

    def edit_task(self, project_id: str, task_id: str, edit: TaskEdit, acting_member_id: str,
                  now: datetime = None) -> StatusChange:
        project, rejected = self._check_actor(project_id, acting_member_id)
        if rejected:
            return rejected
        return self._commit(apply_task_edit(project, task_id, edit, acting_member_id, now=now))

    # -- queries -----------------------------------------------------------

    def query_blocked(self, project_id: str) -> List[Task]:
        project = self.projects.require(project_id)
        return query_blocked(project.tasks)

    def query_blocking(self, project_id: str, task_id: str) -> List[Task]:
        project = self.projects.require(project_id)
        task = find_task(task_id, project.tasks)
        if task is None:
            return []
        return blocking_tasks(task, project.tasks)

    def get_logs(self, project_id: str) -> List[LogEntry]:
        return self.audit.query_by_project(project_id)

    def tasks_for_member(self, member_id: str) -> List[Tuple[Project, List[Task]]]:
        """Each project with the tasks assigned to the member; empty groups are left out."""
        groups = []
        for project in self.projects.list():
            tasks = [t for t in project.tasks if member_id in t.assigned_to]
            if tasks:
                groups.append((project, tasks))
        return groups

    # -- summaries ---------------------------------------------------------

    def summarize_project(self, project_id: str, summarizer: Summarizer) -> ProjectSummary:
        project = self.projects.require(project_id)
        return summarizer.summarize(build_project_summary_input(project, self.members))

    def summarize_portfolio(self, summarizer: Summarizer) -> ProjectSummary:
        return summarizer.summarize(build_portfolio_summary_input(self.projects.list(), self.members))

    @staticmethod
    def clone_project_tasks(source_tasks: Sequence[Task]) -> List[Task]:
        return clone_project_tasks(source_tasks)
