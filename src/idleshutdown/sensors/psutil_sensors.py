"""
psutil-backed sensor implementations.
"""

import logging
from typing import Set

import psutil

from ..models.samples import CpuCounters
from ..validation import SensorError
from .base import CpuSensor, SessionSensor

logger = logging.getLogger(__name__)

# Fields of psutil.cpu_times() counted as work. guest/guest_nice are already
# included in user/nice on Linux.
BUSY_FIELDS = ("user", "nice", "system", "irq", "softirq", "steal")
IDLE_FIELDS = ("idle", "iowait")


class PsutilCpuSensor(CpuSensor):
    """
    Reads system-wide CPU times through `psutil.cpu_times()`.

    Time waiting on I/O counts as idle, the same way `/proc/stat` based
    tools treat it.
    """

    def read_cpu_counters(self) -> CpuCounters:
        try:
            times = psutil.cpu_times()
        except (OSError, psutil.Error) as e:
            raise SensorError(f"failed to read CPU times: {e}") from e

        busy = sum(getattr(times, name, 0.0) for name in BUSY_FIELDS)
        idle = sum(getattr(times, name, 0.0) for name in IDLE_FIELDS)
        return CpuCounters(busy_ticks=busy, idle_ticks=idle)


class PsutilSessionSensor(SessionSensor):
    """
    Lists logged-in users through `psutil.users()`.

    Several terminals of the same user count as one session, matching the
    distinct first column of `who`.
    """

    def list_active_sessions(self) -> Set[str]:
        try:
            users = psutil.users()
        except (OSError, psutil.Error) as e:
            raise SensorError(f"failed to list logged-in users: {e}") from e

        return {user.name for user in users if user.name}
