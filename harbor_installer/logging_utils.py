from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

LOG_NAME = "harbor-installer.log"

# The temporary directory is one of the two places we are allowed to write.
DEFAULT_LOG_PATH = os.path.join("/tmp", LOG_NAME)


def log_path_for(tmp_dir: str) -> str:
    return os.path.join(tmp_dir, LOG_NAME)


def configure_logging(
    log_path: Optional[str] = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
) -> Optional[str]:
    """Configure logging.

    Notes:
    - The log file is best-effort. If it cannot be opened we keep logging to
      the console only and report that, rather than failing the bootstrap.
    - Passing log_path=None disables the file handler.

    Returns the file path being used, or None when logging to console only.
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_harbor_configured", False):
        return getattr(logger, "_harbor_log_path", log_path)

    chosen_path: Optional[str] = None
    handlers: list[logging.Handler] = []
    file_error: Optional[OSError] = None

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    if log_path:
        try:
            Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
            file_handler.setFormatter(fmt)
            handlers.append(file_handler)
            chosen_path = log_path
        except OSError as e:
            file_error = e

    if also_console or not handlers:
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_harbor_configured", True)
    setattr(logger, "_harbor_log_path", chosen_path)

    log = logging.getLogger(__name__)
    if file_error is not None:
        log.warning("Cannot open log file %s (%s); logging to console only", log_path, file_error)
    log.debug("Logging initialized (requested=%s, actual=%s)", log_path, chosen_path)
    return chosen_path
