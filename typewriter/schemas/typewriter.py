"""
Typewriter schema definitions.

``TypewriterOptions`` is the validated configuration of an engine and
``TypewriterFrame`` is the observable state it publishes on every change.
"""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class TypewriterMode(str, Enum):
    """The three states of the typewriter state machine"""

    TYPING = "typing"
    PAUSING = "pausing"
    DELETING = "deleting"


DEFAULT_PHRASES: List[str] = [
    "Software Engineer",
    "Full Stack Developer",
    "Problem Solver",
    "Tech Enthusiast",
]


class TypewriterOptions(BaseModel):
    """Configuration for a typewriter engine"""

    phrases: List[str] = Field(
        default_factory=lambda: list(DEFAULT_PHRASES),
        description="Ordered phrases to cycle through (empty list keeps the engine idle)",
    )
    typing_interval_ms: float = Field(
        default=100, ge=0, description="Delay between typed characters (ms)"
    )
    deleting_interval_ms: float = Field(
        default=50, ge=0, description="Delay between deleted characters (ms)"
    )
    pause_duration_ms: float = Field(
        default=2000, ge=0, description="Pause after a phrase is fully typed (ms)"
    )


class TypewriterFrame(BaseModel):
    """Snapshot of the engine's display state"""

    text: str = Field(..., description="Currently displayed text")
    mode: TypewriterMode = Field(..., description="Current state machine mode")
    phrase_index: int = Field(..., ge=0, description="Index of the active phrase")
    phrase: str = Field(..., description="Active phrase (text is always a prefix of it)")
    running: bool = Field(..., description="Whether the engine is currently scheduled")
