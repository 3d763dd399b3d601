"""Loguru logging configuration.

Human-readable records go to stderr; records bound with ``json_output=True``
are additionally emitted as serialized JSON.  When ``log_dir`` is set a
rotating file sink is added as well.

Credentials (passwords, temporary passwords, invitation tokens) are never
passed to the logger; callers log user ids and identifiers only.
"""

import sys
from pathlib import Path

from loguru import logger

_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"
_LOG_FILENAME = "worktrack-api.log"


def setup_logging(log_level: str = "INFO", log_dir: str | None = None) -> None:
    """Configure Loguru sinks.

    Args:
        log_level: Minimum log level to emit (case-insensitive).
        log_dir: Optional directory for log files.  When set, a file sink
            rotated every 24 hours and retained 7 days is added.
    """
    level = log_level.upper()
    logger.remove()
    logger.configure(extra={"service": "worktrack-api"})
    logger.add(sys.stderr, level=level, format=_LOG_FORMAT, serialize=False)
    logger.add(
        sys.stderr,
        level=level,
        serialize=True,
        filter=lambda record: record["extra"].get("json_output", False),
    )

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path / _LOG_FILENAME,
            level=level,
            format=_LOG_FORMAT,
            rotation="24h",
            retention="7 days",
        )
