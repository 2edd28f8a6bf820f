class CascadeError(Exception):
    """Base exception for all cascadetm errors."""
    pass

class RecoverableError(CascadeError):
    """An error that can be recovered from without data loss."""
    pass

class FatalError(CascadeError):
    """An error that requires application termination or major intervention."""
    pass

class CorruptionError(FatalError):
    """Corrupted Data Error - from syntax errors in data formats, to data that fails its schema"""
    pass

class FileOperationError(RecoverableError):
    """File operation failed but can be retried."""
    pass

class MigrationNeededError(RecoverableError):
    """ Data is valid, but was written by an older schema version """
    pass

class ProjectNotFoundError(RecoverableError):
    """A project id did not resolve to a stored project."""

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")
