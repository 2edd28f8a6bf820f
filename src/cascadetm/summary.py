"""
Inputs for the external summarization service.

The summarizer is an opaque collaborator that turns task statuses and
blocked-task descriptions into free text. Nothing in the core reads its
output; this module only shapes what it is given.
"""
from typing import List, Protocol, Sequence

from pydantic import BaseModel, Field

from .models import Project, ProjectStage, TaskStatus
from .graph import find_task, query_blocked
from .repository import MemberDirectory

class ProjectSummaryInput(BaseModel):
    project_name: str = Field(description="The name of the project")
    project_stage: ProjectStage = Field(description="The current stage of the project")
    task_statuses: List[TaskStatus] = Field(default_factory=list, description="Status of every task in the project")
    blocked_tasks: List[str] = Field(
        default_factory=list,
        description="One sentence per task that is blocked by another"
    )

class PortfolioSummaryInput(BaseModel):
    projects: List[ProjectSummaryInput] = Field(default_factory=list, description="Every project to summarize")

class ProjectSummary(BaseModel):
    summary: str = Field(description="Paragraph on the current status and health")
    hurdles: str = Field(description="The most critical hurdles or blocked tasks")
    remark: str = Field(description="One-sentence concluding remark")

class Summarizer(Protocol):
    def summarize(self, summary_input: BaseModel) -> ProjectSummary:
        ...

def describe_blocked_tasks(project: Project, members: MemberDirectory) -> List[str]:
    """Sentences naming each blocked task, what it waits for, and who owns that."""
    descriptions = []
    for task in query_blocked(project.tasks):
        dependency = find_task(task.dependency_id, project.tasks)
        assignees = ", ".join(members.names(dependency.assigned_to)) or "nobody"
        descriptions.append(
            f'"{task.name}" is waiting for "{dependency.name}" which is assigned to: {assignees}.'
        )
    return descriptions

def build_project_summary_input(project: Project, members: MemberDirectory) -> ProjectSummaryInput:
    return ProjectSummaryInput(
        project_name=project.name,
        project_stage=project.stage,
        task_statuses=[t.status for t in project.tasks],
        blocked_tasks=describe_blocked_tasks(project, members),
    )

def build_portfolio_summary_input(projects: Sequence[Project], members: MemberDirectory) -> PortfolioSummaryInput:
    return PortfolioSummaryInput(
        projects=[build_project_summary_input(p, members) for p in projects]
    )
