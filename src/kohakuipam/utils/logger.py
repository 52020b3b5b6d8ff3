"""
Logging setup for KohakuIPAM.

All modules log through loguru. ``get_logger`` hands out a logger bound to
the calling module's name, ``configure_logging`` installs the sinks once at
process start and reroutes stdlib logging (uvicorn, fastapi) into loguru.
"""

import inspect
import logging
import sys
import traceback

from loguru import logger as _logger

from kohakuipam.models.enums import LogLevel

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)

_LEVEL_MAP = {
    LogLevel.FULL: "TRACE",
    LogLevel.DEBUG: "DEBUG",
    LogLevel.INFO: "INFO",
    LogLevel.WARNING: "WARNING",
}

_logger.configure(extra={"name": "kohakuipam"})


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = _logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller outside of the logging module so loguru reports it
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        _logger.bind(name=record.name).opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def get_logger(name: str):
    """Get a loguru logger bound to a module name."""
    return _logger.bind(name=name)


def configure_logging(level: LogLevel = LogLevel.INFO, log_file: str = "") -> None:
    """
    Configure loguru sinks and intercept stdlib logging.

    Args:
        level: Verbosity for console and file sinks.
        log_file: Optional path of a rotating log file (empty = console only).
    """
    loguru_level = _LEVEL_MAP.get(level, "INFO")

    _logger.remove()
    _logger.add(
        sys.stderr,
        level=loguru_level,
        format=LOG_FORMAT,
        backtrace=level == LogLevel.FULL,
        diagnose=level == LogLevel.FULL,
    )
    if log_file:
        _logger.add(
            log_file,
            level=loguru_level,
            format=LOG_FORMAT,
            rotation="10 MB",
            retention=5,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False


def format_traceback(exc: BaseException) -> str:
    """Format an exception with its traceback as a single string."""
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
