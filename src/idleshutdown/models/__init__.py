"""
Data models and structures for the idle shutdown agent.

Configuration Models:
- Idle-check windows and the optional fixed CPU threshold
- Calibration timing, task cadences and file locations

Sample Models:
- Raw CPU counter readings
- CPU and session samples held by the rolling buffers

Calibration Models:
- The durable calibration record and its lifecycle phase
- The result of a successful calibration run
"""

from .config import (
    AppConfig,
    CalibrationConfig,
    MonitoringConfig,
    PathsConfig,
    SchedulingConfig,
    ShutdownConfig,
    ThresholdMode,
)

from .samples import CpuCounters, CpuSample, SessionSample

from .calibration import CalibrationPhase, CalibrationResult, CalibrationState

__all__ = [
    # Configuration
    "AppConfig",
    "CalibrationConfig",
    "MonitoringConfig",
    "PathsConfig",
    "SchedulingConfig",
    "ShutdownConfig",
    "ThresholdMode",
    # Samples
    "CpuCounters",
    "CpuSample",
    "SessionSample",
    # Calibration
    "CalibrationPhase",
    "CalibrationResult",
    "CalibrationState",
]
