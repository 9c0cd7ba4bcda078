"""
Rolling sample buffers and idle predicates.

This package keeps the live history of the two monitored metrics and turns
it into stable yes/no idle verdicts:

- SampleBuffer: lock-protected, time-ordered rolling window
- CpuMonitor / SessionMonitor: sensor-fed owners of one buffer each
- is_cpu_idle / no_active_sessions: pure windowed predicates
"""

from .buffer import SampleBuffer
from .cpu_monitor import CpuMonitor, compute_busy_percent
from .predicates import (
    PredicateResult,
    is_cpu_idle,
    minimum_samples,
    no_active_sessions,
    select_window,
)
from .session_monitor import SessionMonitor

__all__ = [
    "SampleBuffer",
    "CpuMonitor",
    "SessionMonitor",
    "compute_busy_percent",
    "PredicateResult",
    "is_cpu_idle",
    "no_active_sessions",
    "minimum_samples",
    "select_window",
]
