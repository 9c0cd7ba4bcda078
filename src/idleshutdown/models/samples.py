"""
Sample data models.

Samples are immutable once recorded. Timestamps are epoch seconds, the same
representation `time.time()` returns.
"""

from dataclasses import dataclass, field
from typing import FrozenSet


@dataclass(frozen=True)
class CpuCounters:
    """
    One reading of the cumulative CPU time counters.

    Attributes:
        busy_ticks: Time spent doing work, summed over all CPUs.
        idle_ticks: Time spent idle or waiting on I/O, summed over all CPUs.
    """

    busy_ticks: float
    idle_ticks: float

    @property
    def total_ticks(self) -> float:
        return self.busy_ticks + self.idle_ticks


@dataclass(frozen=True)
class CpuSample:
    """Instantaneous CPU busy percentage in [0, 100]."""

    timestamp: float
    value: float


@dataclass(frozen=True)
class SessionSample:
    """
    Number of distinct active sessions at a point in time.

    The identifiers are kept only for diagnostic logging.
    """

    timestamp: float
    value: int
    sessions: FrozenSet[str] = field(default_factory=frozenset)
