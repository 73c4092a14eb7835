"""
Logging configuration for datahaven-launcher

Two loggers matter:
- the package loggers (``datahaven_launcher.*``), following the root level
- the subprocess output logger, which can be given its own level so container
  and docker output can be shown or hidden independently
"""

import logging
import sys
from typing import Optional, Union

OUTPUT_LOGGER_NAME = "datahaven_launcher.shell.output"

LOG_FORMAT = "%(asctime)s - %(levelname)-8s %(name)s %(filename)s:%(lineno)d %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level: Union[int, str]) -> int:
    """Turn a level name ("debug", "INFO") or number into a logging level

    Raises:
        ValueError: If ``level`` is not a known level name
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def setup_logging(
    level: Union[int, str] = logging.INFO,
    output_level: Optional[Union[int, str]] = None,
) -> None:
    """
    Configure logging with timestamp, file and line number information

    Args:
        level: Root logging level (default: INFO)
        output_level: Level for subprocess output lines; None follows ``level``
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(resolve_level(level))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Filtering happens on the loggers so the output logger can be more verbose than root
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    output_logger = logging.getLogger(OUTPUT_LOGGER_NAME)
    if output_level is None:
        output_logger.setLevel(logging.NOTSET)
    else:
        output_logger.setLevel(resolve_level(output_level))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
