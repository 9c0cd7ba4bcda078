"""
Orchestration of the agent: periodic tasks, the shutdown decision and the
daemon that ties them together.
"""

from .daemon import IdleShutdownDaemon
from .decision_loop import SHUTDOWN_REASON, DecisionLoop, TickOutcome, format_duration
from .scheduler import PeriodicTask

__all__ = [
    "IdleShutdownDaemon",
    "DecisionLoop",
    "TickOutcome",
    "SHUTDOWN_REASON",
    "format_duration",
    "PeriodicTask",
]
