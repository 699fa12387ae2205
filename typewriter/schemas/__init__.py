"""
Pydantic schemas for the typewriter service
"""

from .typewriter import (
    DEFAULT_PHRASES,
    TypewriterFrame,
    TypewriterMode,
    TypewriterOptions,
)

__all__ = [
    "DEFAULT_PHRASES",
    "TypewriterFrame",
    "TypewriterMode",
    "TypewriterOptions",
]
