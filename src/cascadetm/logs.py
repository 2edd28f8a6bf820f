import logging
import os
import sys
from pathlib import Path

ROOT_LOGGER = 'cascadetm'
LOG_FILE = 'cascadetm.log'

FILE_FORMAT = '[%(asctime)s] %(levelname)-8s [%(name)s:%(funcName)s:%(lineno)d] %(message)s'
FILE_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
CONSOLE_FORMAT = '%(levelname)s: %(message)s'
CONSOLE_DEBUG_FORMAT = '%(levelname)-8s [%(name)s] %(message)s'

def _debug_enabled() -> bool:
    return os.getenv('CASCADETM_DEBUG', '').lower() in ('1', 'true', 'yes')

def _console_level() -> int:
    """CASCADETM_DEBUG wins over CASCADETM_LOG_LEVEL; WARNING when neither is set."""
    if _debug_enabled():
        return logging.DEBUG
    name = os.getenv('CASCADETM_LOG_LEVEL', '').upper()
    if not name:
        return logging.WARNING
    return getattr(logging, name, logging.WARNING)

def _log_dir() -> Path:
    override = os.getenv('CASCADETM_LOG_DIR')
    if override:
        return Path(override)
    return Path.home() / ".local" / "share" / "cascadetm" / "logs"

def setup_logging():
    """Configure the cascadetm logger: a quiet console and a detailed log file."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.propagate = False

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(_console_level())
    console.setFormatter(logging.Formatter(CONSOLE_DEBUG_FORMAT if _debug_enabled() else CONSOLE_FORMAT))
    logger.addHandler(console)

    log_dir = _log_dir()
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = logging.FileHandler(log_dir / LOG_FILE)
    except OSError as e:
        # Read-only home directories still get console logging
        logger.warning(f"File logging disabled, cannot write to {log_dir}: {e}")
    else:
        log_file.setLevel(logging.DEBUG)
        log_file.setFormatter(logging.Formatter(FILE_FORMAT, FILE_DATE_FORMAT))
        logger.addHandler(log_file)

    return logger

setup_logging()

def get_logger(name: str = None):
    """Get the cascadetm logger, or a child logger for one module."""
    if name:
        return logging.getLogger(f'{ROOT_LOGGER}.{name}')
    return logging.getLogger(ROOT_LOGGER)
