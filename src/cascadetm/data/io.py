"""
File access for workspace data: atomic saves and tolerant loads.

Saves go through a temporary file in the target directory that is fsynced
and then moved over the target, so a crash leaves either the old file or the
new one, never a half-written file.
"""
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Type, Union

import yaml

from cascadetm.recovery import FileOperationError, FatalError, CorruptionError
from cascadetm.logs import get_logger

log = get_logger("io")

DATA_YAML = 0
DATA_JSON = 1

def _dump_yaml(data: Dict[str, Any], stream):
    yaml.safe_dump(data, stream, default_flow_style=False, sort_keys=False, indent=2, allow_unicode=True)

def _dump_json(data: Dict[str, Any], stream):
    json.dump(data, stream, indent=2, ensure_ascii=False)
    stream.write("\n")

_DUMPERS = {
    DATA_YAML: _dump_yaml,
    DATA_JSON: _dump_json,
}

def _discard(temp_path: Optional[str]):
    """Remove the temporary file of a failed save, if it is still there."""
    if temp_path is None or not os.path.exists(temp_path):
        return
    try:
        os.unlink(temp_path)
        log.debug(f"Removed partial write {temp_path}")
    except OSError as e:
        # The original error is the one worth reporting
        log.warning(f"Leaving stray temp file {temp_path}: {e}")

def atomic_write(data_type: int, file_path: Union[Path, str], data: Dict[str, Any], create_dirs: bool = False) -> bool:
    """
    Save a dict as YAML or JSON, replacing the target in one step.

    Args:
        data_type: DATA_YAML or DATA_JSON.
        file_path: Where the data ends up.
        data: Plain, serializable data (use ``model_dump(mode='json')``).
        create_dirs: Create missing parent directories first.

    Raises:
        FatalError: If the format is unknown or the data cannot be serialized.
        FileOperationError: If the file system refuses the write.
    """
    dump = _DUMPERS.get(data_type)
    if dump is None:
        raise FatalError(f"Unknown data format: {data_type}")

    target = Path(file_path)
    if create_dirs:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log.error(f"Cannot create {target.parent}: {e}")
            raise FileOperationError(f"Cannot create directory {target.parent}: {e}") from e

    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(mode='w', encoding='utf-8', dir=target.parent,
                                         prefix=f".{target.name}.", suffix='.tmp', delete=False) as handle:
            temp_path = handle.name
            dump(data, handle)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, target)
    except (yaml.YAMLError, TypeError, ValueError) as e:
        _discard(temp_path)
        log.critical(f"Refusing to save {target}, data is not serializable: {e}")
        raise FatalError(f"Could not serialize data for {target}: {e}") from e
    except OSError as e:
        _discard(temp_path)
        log.error(f"Saving {target} failed: {e}")
        raise FileOperationError(f"Could not save {target}: {e}") from e

    log.debug(f"Saved {target}")
    return True

def _load(file_path: Union[Path, str], parse: Callable[[Any], Any],
          syntax_errors: Tuple[Type[Exception], ...], label: str) -> Optional[Dict]:
    source = Path(file_path)
    if not source.exists():
        return None

    try:
        with open(source, 'r', encoding='utf-8') as handle:
            data = parse(handle)
    except syntax_errors as e:
        raise CorruptionError(f"{label} syntax error in {source}: {e}") from e
    except OSError as e:
        raise FileOperationError(f"Could not read {source}: {e}") from e

    # An empty file holds no data yet
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise CorruptionError(f"File {source} contains invalid data structure: expected a mapping")
    return data

def load_yaml_file(file_path: Union[Path, str]) -> Optional[Dict]:
    """
    Read a YAML mapping.

    Returns:
        The parsed mapping, or None if the file doesn't exist.

    Raises:
        CorruptionError: On a syntax error or a top level that is not a mapping.
        FileOperationError: If the file cannot be read.
    """
    return _load(file_path, yaml.safe_load, (yaml.YAMLError,), "YAML")

def load_json_file(file_path: Union[Path, str]) -> Optional[Dict]:
    """Read a JSON mapping. Same contract as load_yaml_file."""
    return _load(file_path, json.load, (json.JSONDecodeError,), "JSON")
