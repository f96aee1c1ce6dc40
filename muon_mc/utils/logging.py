"""Logging infrastructure for muon flux simulations."""

import logging
import sys
from pathlib import Path
from typing import Optional


LOGGER_NAME = 'muon_mc'


def setup_logger(
    name: str = LOGGER_NAME,
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG
) -> logging.Logger:
    """
    Set up logger with console and optional file output.

    The console handler writes to stderr so that the single result line
    printed on stdout stays machine readable.

    Parameters:
        name: Logger name
        level: Overall logging level
        log_file: Optional path to log file
        console_level: Logging level for console output
        file_level: Logging level for file output

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s - %(message)s'))
    logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """
    Get a logger under the package hierarchy.

    Parameters:
        name: Logger name, e.g. a module ``__name__``

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
