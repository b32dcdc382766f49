"""Utility modules for linetables.

Provides:
- logger: get_logger for namespaced logging
"""

from linetables.utils.logger import get_logger

__all__ = [
    "get_logger",
]
