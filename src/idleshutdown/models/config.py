"""
Configuration data models.

This module contains the configuration structures loaded from `config.toml`:
idle-check windows, calibration timing, task cadences and file locations.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 60 * SECONDS_PER_MINUTE
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR


class ThresholdMode(Enum):
    """How the CPU threshold is chosen."""
    MANUAL = "manual"
    AUTO = "auto"


@dataclass
class MonitoringConfig:
    """
    Idle-check settings, loaded from the `[monitoring]` section.
    """

    # Minutes CPU must stay below the threshold before a shutdown.
    cpu_check_minutes: int = 60
    # Minutes without any active session before a shutdown.
    user_check_minutes: int = 60
    # Fixed CPU threshold in percent. None selects automatic calibration.
    cpu_threshold: Optional[int] = None

    @property
    def mode(self) -> ThresholdMode:
        return ThresholdMode.AUTO if self.cpu_threshold is None else ThresholdMode.MANUAL

    @property
    def is_auto(self) -> bool:
        return self.mode is ThresholdMode.AUTO


@dataclass
class CalibrationConfig:
    """
    Calibration timing, loaded from the `[calibration]` section.
    """

    # Length of the learning phase and lookback of the first calibration.
    initial_tracking_hours: float = 24.0
    # How often a calibrated agent recomputes its threshold.
    recalibration_interval_days: float = 7.0
    # Lookback used by periodic recalibrations.
    recalibration_tracking_hours: float = 72.0

    @property
    def initial_lookback(self) -> float:
        """Initial lookback in seconds."""
        return self.initial_tracking_hours * SECONDS_PER_HOUR

    @property
    def recalibration_interval(self) -> float:
        """Recalibration interval in seconds."""
        return self.recalibration_interval_days * SECONDS_PER_DAY

    @property
    def recalibration_lookback(self) -> float:
        """Recalibration lookback in seconds."""
        return self.recalibration_tracking_hours * SECONDS_PER_HOUR


@dataclass
class SchedulingConfig:
    """
    Task cadences and buffer retention, loaded from the `[scheduling]` section.
    """

    sampling_interval_seconds: float = 30.0
    evaluation_interval_seconds: float = 60.0
    calibration_check_interval_seconds: float = 3600.0
    cpu_retention_hours: float = 72.0
    session_retention_hours: float = 2.0
    # Gap between the two counter reads that make up one CPU sample.
    cpu_sample_gap_seconds: float = 0.1

    @property
    def cpu_retention(self) -> float:
        return self.cpu_retention_hours * SECONDS_PER_HOUR

    @property
    def session_retention(self) -> float:
        return self.session_retention_hours * SECONDS_PER_HOUR


@dataclass
class ShutdownConfig:
    """
    Power-off settings, loaded from the `[shutdown]` section.
    """

    command: str = "shutdown -h now"
    dry_run: bool = False


@dataclass
class PathsConfig:
    """
    File locations, loaded from the `[paths]` section.
    """

    state_file: Path = Path("/var/lib/idleshutdown/calibration.json")


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)
    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    shutdown: ShutdownConfig = field(default_factory=ShutdownConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)

    @property
    def mode(self) -> ThresholdMode:
        return self.monitoring.mode
