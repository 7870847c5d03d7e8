"""
Logging utilities for plotpatch.
"""

import logging
import os
import sys
from typing import Optional, Union


def _resolve_level(log_level: Union[int, str]) -> int:
    # Convert string log level to numeric if necessary
    if isinstance(log_level, str):
        return getattr(logging, log_level.upper())
    return log_level


def setup_logging(
    log_level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    log_format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    propagate: bool = False
) -> logging.Logger:
    """
    Configure the plotpatch logger for script usage.

    Args:
        log_level: Logging level (default: INFO)
        log_file: File to log to (default: None, log to stdout)
        log_format: Format for log messages
        propagate: Whether to propagate logs to parent loggers

    Returns:
        Configured logger
    """
    log_level = _resolve_level(log_level)

    logger = logging.getLogger("plotpatch")
    logger.setLevel(log_level)
    logger.propagate = propagate

    # Remove any existing handlers
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        # Make sure the directory exists
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def setup_notebook_logging(
    log_level: Union[int, str] = logging.INFO,
    log_format: str = '%(levelname)s - %(message)s',
    propagate: bool = False
) -> logging.Logger:
    """
    Configure the plotpatch logger for Jupyter notebook usage.

    Notebooks re-run cells, so handlers are replaced rather than stacked.
    """
    return setup_logging(log_level=log_level, log_file=None, log_format=log_format, propagate=propagate)
