"""
Calibration lifecycle.

The Calibrator owns the durable CalibrationState. It starts in the learning
phase, runs the initial calibration once enough history has been gathered,
and recalibrates on a fixed interval afterwards. A failed run never touches
the state: the previous threshold (or the learning phase) stays in force and
the run is retried on the next check.
"""

import logging
import threading
import time
from dataclasses import replace
from typing import Callable, List, Optional, Sequence

from ..models.calibration import CalibrationPhase, CalibrationResult, CalibrationState
from ..models.config import CalibrationConfig
from ..models.samples import CpuSample
from ..validation import CalibrationError, StateStoreError
from .state_store import CalibrationStateStore
from .statistics import calibrate

logger = logging.getLogger(__name__)

ThresholdListener = Callable[[CalibrationResult], None]


class Calibrator:
    """
    Learning / calibrated state machine around the idle-baseline procedure.

    The state is read by the decision loop and written by the calibration
    task, possibly from different threads; all access goes through a lock and
    readers only ever see copies.
    """

    def __init__(
        self,
        store: CalibrationStateStore,
        config: Optional[CalibrationConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the calibrator, restoring persisted state if present.

        Args:
            store: Durable storage of the calibration record
            config: Calibration timing, defaults if omitted
            clock: Time source returning epoch seconds
        """
        self.store = store
        self.config = config or CalibrationConfig()
        self.clock = clock
        self._lock = threading.Lock()
        self._listeners: List[ThresholdListener] = []

        try:
            state = store.load()
        except StateStoreError as e:
            logger.warning(f"{e} - starting a new learning phase")
            state = None

        if state is None:
            state = CalibrationState(start_time=self.clock())
            logger.info(
                f"No calibration state found, starting learning phase "
                f"({self.config.initial_tracking_hours}h)"
            )
            self._persist(state)
        elif state.initial_done:
            logger.info(
                f"Restored calibration state: threshold={state.current_threshold:.0f}%, "
                f"idle baseline={state.idle_baseline:.2f}%"
            )
        else:
            logger.info("Restored calibration state: still in learning phase")

        self._state = state

    def _persist(self, state: CalibrationState) -> None:
        try:
            self.store.save(state)
        except StateStoreError as e:
            logger.warning(f"Calibration state not persisted: {e}")

    # --- Read accessors ---

    @property
    def state(self) -> CalibrationState:
        """A copy of the current calibration record."""
        with self._lock:
            return replace(self._state)

    @property
    def phase(self) -> CalibrationPhase:
        with self._lock:
            return self._state.phase

    def is_learning(self) -> bool:
        return self.phase is CalibrationPhase.LEARNING

    @property
    def current_threshold(self) -> float:
        with self._lock:
            return self._state.current_threshold

    @property
    def idle_baseline(self) -> float:
        with self._lock:
            return self._state.idle_baseline

    def learning_time_remaining(self, now: Optional[float] = None) -> float:
        """Seconds left until the initial calibration is due, never negative."""
        now = self.clock() if now is None else now
        with self._lock:
            if self._state.initial_done:
                return 0.0
            end = self._state.start_time + self.config.initial_lookback
        return max(0.0, end - now)

    def should_run_initial(self, now: Optional[float] = None) -> bool:
        now = self.clock() if now is None else now
        with self._lock:
            return (
                not self._state.initial_done
                and now - self._state.start_time >= self.config.initial_lookback
            )

    def should_run_recalibration(self, now: Optional[float] = None) -> bool:
        now = self.clock() if now is None else now
        with self._lock:
            return (
                self._state.initial_done
                and now - self._state.last_calibration_time >= self.config.recalibration_interval
            )

    # --- Listeners ---

    def add_threshold_listener(self, listener: ThresholdListener) -> None:
        """Register a callback invoked after every successful calibration."""
        self._listeners.append(listener)

    def _notify(self, result: CalibrationResult) -> None:
        for listener in list(self._listeners):
            try:
                listener(result)
            except Exception as e:
                logger.error(f"Threshold listener {listener!r} failed: {e}", exc_info=True)

    # --- Calibration runs ---

    def run(self, samples: Sequence[CpuSample], lookback_seconds: float) -> CalibrationResult:
        """
        Run the idle-baseline procedure and adopt its threshold.

        Args:
            samples: CPU buffer snapshot
            lookback_seconds: How much history to calibrate on

        Returns:
            The adopted result

        Raises:
            CalibrationError: If no threshold could be derived; the state is
                left unchanged
        """
        now = self.clock()
        result = calibrate(samples, lookback_seconds, now)

        with self._lock:
            first = not self._state.initial_done
            self._state = replace(
                self._state,
                initial_done=True,
                last_calibration_time=now,
                current_threshold=result.threshold,
                idle_baseline=result.idle_baseline,
            )
            snapshot = replace(self._state)

        self._persist(snapshot)

        kind = "Initial calibration" if first else "Recalibration"
        logger.info(
            f"{kind} complete: idle baseline={result.idle_baseline:.2f}%, "
            f"threshold={result.threshold:.0f}%"
        )
        self._notify(result)
        return result

    def check_and_run(self, samples: Sequence[CpuSample]) -> Optional[CalibrationResult]:
        """
        Run the initial calibration or a recalibration if one is due.

        Returns:
            The adopted result, or None if nothing was due or the run failed
        """
        now = self.clock()
        if self.should_run_initial(now):
            kind, lookback = "initial calibration", self.config.initial_lookback
        elif self.should_run_recalibration(now):
            kind, lookback = "recalibration", self.config.recalibration_lookback
        else:
            return None

        logger.info(f"Running {kind}...")
        try:
            return self.run(samples, lookback)
        except CalibrationError as e:
            logger.warning(f"{kind.capitalize()} failed: {e} - will retry")
            return None
