"""
Core engine components for the typewriter service
"""

from typewriter.schemas.typewriter import TypewriterMode

from .scheduler import AsyncioScheduler, Scheduler, TimerHandle, VirtualScheduler
from .state_machine import ScheduledStateMachine
from .typewriter import TypewriterEngine

__all__ = [
    "AsyncioScheduler",
    "Scheduler",
    "TimerHandle",
    "VirtualScheduler",
    "ScheduledStateMachine",
    "TypewriterEngine",
    "TypewriterMode",
]
