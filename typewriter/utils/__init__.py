"""
Utility modules for the typewriter service
"""

from .logger import VERBOSE, get_logger, setup_logging

__all__ = [
    "VERBOSE",
    "get_logger",
    "setup_logging",
]
