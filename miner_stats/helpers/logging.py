"""Logger module."""

import logging
import os
import sys

import colorlog
from dotenv import find_dotenv, load_dotenv

from miner_stats.helpers.constants import LOG_LEVEL_ENV

# LOG_LEVEL may come from .env; loggers are created at import time.
load_dotenv(find_dotenv(usecwd=True))

loggers: dict[str, logging.Logger] = {}

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_logger(
    name: str,
    log_handler: str = "stderr",
    log_level: str | None = None,
    log_color: bool = False,
    log_file: str | None = None,
) -> logging.Logger:
    """Get logger.

    Console output goes to stderr by default so stdout only carries the
    report summary and table.

    Args:
        name: The name of the logger.
        log_handler: The log handler type ('stderr' or 'stdout').
        log_level: The logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR',
            'CRITICAL'). Falls back to the LOG_LEVEL environment variable,
            then 'INFO'.
        log_color: Whether to use colored output.
        log_file: Optional path of a file that receives the same records.

    Returns:
        logging.Logger: Configured logger instance.

    Raises:
        ValueError: If invalid handler or log level is provided.
    """
    if name in loggers:
        return loggers[name]

    streams = {"stdout": sys.stdout, "stderr": sys.stderr}
    if log_handler not in streams:
        err_msg = f"Invalid handler: {log_handler}"
        raise ValueError(err_msg)

    level_name = (log_level or os.getenv(LOG_LEVEL_ENV) or "INFO").upper()
    if level_name not in LOG_LEVELS:
        err_msg = f"Invalid log level: {level_name}"
        raise ValueError(err_msg)

    level = LOG_LEVELS[level_name]
    logger = logging.getLogger(name) if not log_color else colorlog.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    if not log_color:
        handler = logging.StreamHandler(streams[log_handler])
        formatter = logging.Formatter(LOG_FORMAT)
    else:
        handler = colorlog.StreamHandler(streams[log_handler])
        formatter = colorlog.ColoredFormatter(
            f"%(log_color)s {LOG_FORMAT}",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
        )

    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    loggers[name] = logger
    return logger


__all__ = ["get_logger"]
