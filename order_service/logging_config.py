"""
logging_config.py — Log Setup for the Orders API

Every module logs through the standard logging module; this file decides
where those records go and how they look. Records are written to stdout for
the container runtime and, unless disabled, to a local log file.

Each line carries the process ID, so records from several uvicorn workers
writing to the same file can be told apart. SQLAlchemy and the uvicorn
access log are kept at WARNING unless SQL echo is switched on.
"""

import logging
import sys

from . import config


def setup_logging(level: str = None, log_file: str = None):
    """
    Installs the root handlers for the service.

    Called once when main.py is imported. Repeated calls keep the existing
    root handlers, because logging.basicConfig skips a configured root logger.

    Args:
        level (str, optional): Log level name; falls back to LOG_LEVEL.
        log_file (str, optional): Log file path; falls back to LOG_FILE.
            Pass an empty string to log to stdout only.
    """
    log_format = '%(asctime)s - %(levelname)s - [PID:%(process)d] - %(message)s'
    log_file = config.LOG_FILE if log_file is None else log_file

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.insert(0, logging.FileHandler(log_file))

    logging.basicConfig(
        level=level or config.LOG_LEVEL,
        format=log_format,
        handlers=handlers
    )

    # SQL statements are only interesting when DB_ECHO is on
    if not config.DB_ECHO:
        logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name):
    """Logger for a module of the service, named after its __name__."""
    return logging.getLogger(name)
