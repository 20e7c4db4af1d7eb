# mediagate/services/logger.py
"""
Logger Service.

Thin layer over loguru: one global sink configuration and per-component
loggers bound with their ``LoggerName`` so records can be filtered by the
component that produced them.

Usage:
    from mediagate.services.logger import get_service_logger
    from mediagate.enums import LoggerName

    logger = get_service_logger(LoggerName.STORAGE_SERVICE)
    logger.info("Uploaded {}", key)
"""

import sys
from typing import Optional, Union

from loguru import logger

from ..enums import LoggerName, LogLevel

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[logger_name]}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[logger_name]} - {message}"
)

logger.configure(extra={"logger_name": LoggerName.SYSTEM.value})


def configure_logging(
    level: Union[LogLevel, str] = LogLevel.INFO, log_file: Optional[str] = None
) -> None:
    """
    Install the console sink (and an optional rotating file sink).

    Args:
        level: Minimum level written by the sinks
        log_file: Optional path of a log file to write alongside stderr
    """
    level_name = level.value if isinstance(level, LogLevel) else str(level).upper()

    logger.remove()
    logger.add(sys.stderr, level=level_name, format=CONSOLE_FORMAT, colorize=True)

    if log_file:
        logger.add(
            log_file,
            level=level_name,
            format=FILE_FORMAT,
            rotation="10 MB",
            retention=5,
            enqueue=True,
        )


def get_service_logger(logger_name: LoggerName):
    """
    Create a logger bound to a specific component.

    Args:
        logger_name: The logger name enum attached to every record

    Returns:
        A loguru logger carrying ``logger_name`` in its extra context
    """
    return logger.bind(logger_name=logger_name.value)
