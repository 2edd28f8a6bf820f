"""
In-process state owned by a Tracker: projects and the member directory.

Projects are stored whole and replaced whole; the engine produces a new
Project for every accepted change and the repository swaps it in.
"""
from typing import Dict, Iterable, List, Optional
from uuid import uuid4

from .models import Member, Project
from .recovery import ProjectNotFoundError
from .logs import get_logger

log = get_logger("repository")

class ProjectRepository:
    """Holds the projects of one workspace, newest first."""

    def __init__(self, projects: Iterable[Project] = ()):
        self._projects: List[Project] = list(projects)

    def list(self) -> List[Project]:
        return list(self._projects)

    def get(self, project_id: str) -> Optional[Project]:
        return next((p for p in self._projects if p.id == project_id), None)

    def require(self, project_id: str) -> Project:
        """Get a project, raising ProjectNotFoundError if it does not exist."""
        project = self.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def add(self, project: Project):
        if self.get(project.id) is not None:
            raise ValueError(f"Project already exists: {project.id}")
        self._projects.insert(0, project)
        log.debug(f"Added project {project.id}")

    def save(self, project: Project):
        """Replace the stored version of a project."""
        self.require(project.id)
        self._projects = [project if p.id == project.id else p for p in self._projects]
        log.debug(f"Saved project {project.id}")

    def __len__(self) -> int:
        return len(self._projects)

class MemberDirectory:
    """The people known to a workspace."""

    def __init__(self, members: Iterable[Member] = ()):
        self._members: Dict[str, Member] = {}
        for member in members:
            self._members[member.id] = member

    def lookup(self, member_id: str) -> Optional[Member]:
        return self._members.get(member_id)

    def __contains__(self, member_id: str) -> bool:
        return member_id in self._members

    def add(self, name: str, member_id: str = None) -> Member:
        """Create a member with a fresh id unless one is given."""
        member = Member(id=member_id or f"mem-{uuid4().hex[:8]}", name=name.strip())
        if member.id in self._members:
            raise ValueError(f"Member already exists: {member.id}")
        # Newest first, matching the listing order
        self._members = {member.id: member, **self._members}
        log.debug(f"Added member {member.id}")
        return member

    def list(self) -> List[Member]:
        return list(self._members.values())

    def names(self, member_ids: Iterable[str]) -> List[str]:
        """Display names for member ids, falling back to the id when unknown."""
        names = []
        for member_id in member_ids:
            member = self.lookup(member_id)
            names.append(member.name if member else member_id)
        return names

    def __len__(self) -> int:
        return len(self._members)
