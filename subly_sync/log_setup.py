"""
Logging setup for applications embedding the sync core.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """
    Configure root logging with a stdout handler and an optional file handler.

    Args:
        level: Log level name
        log_file: Optional path for a persistent log file
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(str(log_file)))
        except (OSError, PermissionError):
            # File logging not available, use stdout only
            pass

    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    # httpx logs every request at INFO, including OAuth endpoints
    logging.getLogger("httpx").setLevel(logging.WARNING)
