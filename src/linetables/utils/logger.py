"""Minimal logging utilities for linetables.

Provides a simple get_logger function that wraps the standard library logging.

Example:
    >>> from linetables.utils.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.debug("Converting tables")
"""

from __future__ import annotations

import logging


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given name.

    Returns a standard library logger with the "linetables." prefix.

    Args:
        name: Logger name (typically __name__)

    Returns:
        logging.Logger instance

    Example:
        >>> logger = get_logger("import")
        >>> logger.name
        'linetables.import'
    """
    if not (name == "linetables" or name.startswith("linetables.")):
        name = f"linetables.{name}"
    return logging.getLogger(name)
