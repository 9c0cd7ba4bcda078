"""
Defines the sensor interfaces the monitors read from.

This module provides:
- CpuSensor: an abstract source of cumulative CPU busy/idle counters.
- SessionSensor: an abstract source of the currently active session identifiers.

Sensors are stateless. A failed read raises SensorError; the caller decides
what to do with the missing reading.
"""

from abc import ABC, abstractmethod
from typing import Set

from ..models.samples import CpuCounters


class CpuSensor(ABC):
    """
    Abstract base class for CPU counter sources.
    """

    @abstractmethod
    def read_cpu_counters(self) -> CpuCounters:
        """
        Read the cumulative CPU counters.

        Returns:
            The busy and idle tick totals since boot.

        Raises:
            SensorError: If the counters cannot be read.
        """
        pass


class SessionSensor(ABC):
    """
    Abstract base class for active-session sources.
    """

    @abstractmethod
    def list_active_sessions(self) -> Set[str]:
        """
        List the distinct active session identifiers.

        Returns:
            A set of identifiers; empty when nobody is logged in.

        Raises:
            SensorError: If the sessions cannot be enumerated.
        """
        pass
