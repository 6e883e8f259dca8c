"""
Logging configuration for qxsim.

Library modules log under the "qxsim" namespace and never configure handlers
themselves; applications call setup_logging() once to see the output.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional


ROOT_LOGGER_NAME = "qxsim"


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging for the qxsim namespace.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional file to also write logs to
        format_string: Optional custom format string

    Returns:
        The configured "qxsim" logger
    """
    if format_string is None:
        format_string = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    formatter = logging.Formatter(format_string)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger below the qxsim namespace.

    Args:
        name: Module name (typically __name__); a leading "qxsim." is not repeated
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
