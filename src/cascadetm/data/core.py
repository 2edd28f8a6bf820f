"""
DataCore - Workspace loading, validation and saving for Cascade Task Manager.

This module provides the main interface for reading a workspace directory
into a Tracker, checking its schema version, validating its files and
writing everything back.
"""
from pathlib import Path
from typing import Optional, Type, TypeVar

from packaging import version
from pydantic import BaseModel, ValidationError

from cascadetm.recovery import FatalError, CorruptionError, MigrationNeededError
from cascadetm.version import APP_SCHEMA_VERSION
from cascadetm.models import ProjectList, MemberList, AuditTrail
from cascadetm.repository import ProjectRepository, MemberDirectory
from cascadetm.audit import AuditLog
from cascadetm.tracker import Tracker
from cascadetm.logs import get_logger
from .io import atomic_write, load_yaml_file, load_json_file, DATA_YAML, DATA_JSON
from .validate import schema_filename, schema_errors

log = get_logger("data")

META_FILE = "meta.json"

M = TypeVar("M", bound=BaseModel)

def load_model(model_type: Type[M], file_path: Path) -> Optional[M]:
    """
    Load a workspace model from its YAML file, validating it first.

    Returns:
        The model, or None if the file doesn't exist.

    Raises:
        CorruptionError: If the file fails its schema or the model's own checks.
    """
    data = load_yaml_file(file_path)
    if data is None:
        return None

    errors = schema_errors(data, model_type)
    if errors:
        raise CorruptionError(f"{file_path} failed schema validation: {'; '.join(errors[:5])}")

    try:
        return model_type.model_validate(data)
    except ValidationError as e:
        raise CorruptionError(f"{file_path} contains inconsistent data: {e}") from e

class TrackerContext:
    """Context object giving access to a workspace's Tracker; saves on a clean exit."""

    def __init__(self, basepath: Path):
        self.basepath = Path(basepath)
        DataCore.validate_version(self.basepath)
        projects = load_model(ProjectList, self.basepath / schema_filename(ProjectList)) or ProjectList()
        members = load_model(MemberList, self.basepath / schema_filename(MemberList)) or MemberList()
        trail = load_model(AuditTrail, self.basepath / schema_filename(AuditTrail)) or AuditTrail()
        self.tracker = Tracker(
            projects=ProjectRepository(projects.projects),
            members=MemberDirectory(members.members),
            audit=AuditLog(trail.entries),
        )
        log.debug(f"Loaded workspace {self.basepath}: {len(self.tracker.projects)} project(s)")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - save all changes unless the block failed."""
        if exc_type is None:
            self.save_all()
        else:
            log.warning(f"Not saving workspace {self.basepath} after error: {exc_val}")

    def save_all(self):
        """Save projects, members and the audit log back to their files."""
        DataCore.write_workspace(self.basepath, self.tracker)

class DataCore:
    PROJECT_DATA_DIR = Path(".cscd")

    @staticmethod
    def is_workspace(basepath: Path = None) -> bool:
        basepath = Path(basepath or DataCore.PROJECT_DATA_DIR)
        return (basepath / META_FILE).exists()

    @staticmethod
    def init_workspace(basepath: Path = None) -> Path:
        """Create an empty workspace directory. Raises FatalError if one already exists."""
        basepath = Path(basepath or DataCore.PROJECT_DATA_DIR)
        if DataCore.is_workspace(basepath):
            raise FatalError(f"Workspace already initialized at {basepath}")
        DataCore.write_workspace(basepath, Tracker())
        log.info(f"Initialized workspace at {basepath}")
        return basepath

    @staticmethod
    def write_workspace(basepath: Path, tracker: Tracker):
        basepath = Path(basepath)
        atomic_write(DATA_JSON, basepath / META_FILE, {"schema_version": APP_SCHEMA_VERSION}, create_dirs=True)
        models = (
            ProjectList(projects=tracker.projects.list()),
            MemberList(members=tracker.members.list()),
            AuditTrail(entries=tracker.audit.all()),
        )
        for model in models:
            atomic_write(DATA_YAML, basepath / schema_filename(type(model)), model.model_dump(mode='json'))

    @staticmethod
    def stored_schema_version(basepath: Path) -> Optional[str]:
        meta = load_json_file(Path(basepath) / META_FILE)
        if meta is None:
            return None
        return meta.get("schema_version")

    @staticmethod
    def validate_version(basepath: Path) -> bool:
        """
        Compare the workspace's schema version with the application's.

        Raises:
            FatalError: If there is no workspace, or it was written by a newer version.
            MigrationNeededError: If it was written by an older version.
        """
        stored = DataCore.stored_schema_version(basepath)
        if stored is None:
            raise FatalError(f"No workspace found at {basepath}")

        try:
            stored_version = version.parse(stored)
        except version.InvalidVersion as e:
            raise CorruptionError(f"Invalid schema version in {basepath / META_FILE}: {stored}") from e

        app_version = version.parse(APP_SCHEMA_VERSION)
        log.info(f"WORKSPACE: {stored}; APP: {APP_SCHEMA_VERSION};")
        if stored_version < app_version:
            raise MigrationNeededError("Workspace data and cascadetm using inconcurrent versions, migrate data")
        if stored_version > app_version:
            raise FatalError(f"Workspace was written by a newer schema version ({stored}), upgrade cascadetm")
        return True

    @staticmethod
    def get_context(basepath: Path = None) -> TrackerContext:
        return TrackerContext(Path(basepath or DataCore.PROJECT_DATA_DIR))
