"""
Automatic CPU threshold calibration.

- statistics: polars-based idle-baseline procedure
- state_store: durable JSON calibration record
- calibrator: learning / calibrated lifecycle
"""

from .calibrator import Calibrator, ThresholdListener
from .state_store import CalibrationStateStore
from .statistics import (
    MIN_CALIBRATION_SAMPLES,
    MIN_THRESHOLD,
    MIN_WINDOW_SAMPLES,
    STDDEV_BOUNDS,
    THRESHOLD_BUFFER,
    WINDOW_DURATION,
    calibrate,
    compute_threshold,
    find_idle_baseline,
    samples_to_frame,
    window_statistics,
)

__all__ = [
    "Calibrator",
    "ThresholdListener",
    "CalibrationStateStore",
    "calibrate",
    "compute_threshold",
    "find_idle_baseline",
    "samples_to_frame",
    "window_statistics",
    "MIN_CALIBRATION_SAMPLES",
    "MIN_THRESHOLD",
    "MIN_WINDOW_SAMPLES",
    "STDDEV_BOUNDS",
    "THRESHOLD_BUFFER",
    "WINDOW_DURATION",
]
