"""
Sensors feeding the sample buffers.

The monitors only depend on the two abstract interfaces; the psutil-backed
implementations are the defaults wired by the CLI.
"""

from .base import CpuSensor, SessionSensor
from .psutil_sensors import PsutilCpuSensor, PsutilSessionSensor

__all__ = [
    "CpuSensor",
    "SessionSensor",
    "PsutilCpuSensor",
    "PsutilSessionSensor",
]
