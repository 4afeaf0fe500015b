"""Logging setup for the command line entry point."""
import logging
import os
from pathlib import Path
from typing import Optional

LOG_DIR_ENV = "PROFELOFONO_LOG_DIR"
ROOT_LOGGER = "profelofono"
_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def default_log_dir() -> Path:
    env_dir = os.environ.get(LOG_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    return Path.home() / ".profelofono" / "logs"


def log_path(filename: str, log_dir: Optional[str] = None) -> Path:
    base_dir = Path(log_dir) if log_dir else default_log_dir()
    return base_dir / filename


def configure_logging(verbose: bool = False) -> None:
    """Console logging for the package loggers (warnings only unless verbose)."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
           for h in logger.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)


def setup_file_logger(
    name: str = ROOT_LOGGER,
    filename: str = "profelofono.log",
    *,
    level: int = logging.INFO,
    log_dir: Optional[str] = None,
) -> Path:
    logger = logging.getLogger(name)
    path = log_path(filename, log_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    if any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        return path
    logger.setLevel(level)
    handler = logging.FileHandler(path)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    return path
