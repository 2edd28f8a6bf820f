from typing import Iterable, Iterator, List

from .models import LogEntry
from .logs import get_logger

log = get_logger("audit")

class AuditLog:
    """
    Append-only record of every status change.

    Entries are kept and returned in chronological (append) order. They are
    frozen models, so nothing handed out can be changed afterwards.
    """

    def __init__(self, entries: Iterable[LogEntry] = ()):
        self._entries: List[LogEntry] = list(entries)

    def append(self, entry: LogEntry):
        """Record one status change."""
        if not isinstance(entry, LogEntry):
            raise TypeError(f"Expected LogEntry, got {type(entry).__name__}")
        self._entries.append(entry)
        log.debug(f"Logged {entry.task_id}: {entry.previous_status.value} -> {entry.new_status.value}")

    def extend(self, entries: Iterable[LogEntry]):
        for entry in entries:
            self.append(entry)

    def query_by_project(self, project_id: str) -> List[LogEntry]:
        """All entries of a project, oldest first."""
        return [e for e in self._entries if e.project_id == project_id]

    def query_by_task(self, task_id: str) -> List[LogEntry]:
        """All entries of a single task, oldest first."""
        return [e for e in self._entries if e.task_id == task_id]

    def all(self) -> List[LogEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(list(self._entries))
