"""
Calibration data models.

This module defines the durable calibration record, the learning/calibrated
phase enum and the result of a successful calibration run.
"""

import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict


class CalibrationPhase(Enum):
    """Lifecycle of the automatic threshold."""
    LEARNING = "learning"
    CALIBRATED = "calibrated"


@dataclass
class CalibrationState:
    """
    Durable calibration record.

    `initial_done` flips from False to True exactly once, at the first
    successful calibration. `current_threshold` and `idle_baseline` are only
    written by successful calibration runs.
    """

    start_time: float
    initial_done: bool = False
    last_calibration_time: float = 0.0
    current_threshold: float = 0.0
    idle_baseline: float = 0.0

    @property
    def phase(self) -> CalibrationPhase:
        return CalibrationPhase.CALIBRATED if self.initial_done else CalibrationPhase.LEARNING

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalibrationState":
        """
        Build a state from its persisted form.

        Raises:
            KeyError: If `start_time` is missing
            ValueError: If a field cannot be converted or is not finite
        """
        initial_done = data.get("initial_done", False)
        if not isinstance(initial_done, bool):
            raise ValueError(f"initial_done must be a boolean, got {initial_done!r}")
        state = cls(
            start_time=float(data["start_time"]),
            initial_done=initial_done,
            last_calibration_time=float(data.get("last_calibration_time", 0.0)),
            current_threshold=float(data.get("current_threshold", 0.0)),
            idle_baseline=float(data.get("idle_baseline", 0.0)),
        )
        for name, value in asdict(state).items():
            if isinstance(value, float) and not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value!r}")
        return state


@dataclass(frozen=True)
class CalibrationResult:
    """Outcome of one successful calibration run."""

    threshold: float
    idle_baseline: float
    # The stability bound (max stddev) the accepted windows had to satisfy.
    stddev_bound: float
    sample_count: int
    # Number of windows that passed the accepted stability bound.
    window_count: int
