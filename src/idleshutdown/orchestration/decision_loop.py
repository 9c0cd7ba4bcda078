"""
Shutdown decision loop.

One tick reads the configuration, picks the CPU threshold for the current
mode, evaluates both idle predicates and requests a shutdown when both hold.
"""

import logging
import time
from enum import Enum
from typing import Callable, Optional

from ..calibration import Calibrator
from ..models.config import AppConfig
from ..monitoring import CpuMonitor, SessionMonitor
from ..system.shutdown import ShutdownSink
from ..validation import ShutdownError

logger = logging.getLogger(__name__)

SHUTDOWN_REASON = "VM idle - CPU below threshold and no users logged in"


class TickOutcome(Enum):
    """Result of one decision tick."""
    SKIPPED_LEARNING = "skipped_learning"
    ACTIVE = "active"
    SHUTDOWN_REQUESTED = "shutdown_requested"
    SHUTDOWN_FAILED = "shutdown_failed"


def format_duration(seconds: float) -> str:
    """Human-readable duration such as "23h 14m" or "5m"."""
    total_minutes = int(max(0.0, seconds) // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


class DecisionLoop:
    """
    Evaluates the shutdown condition once per tick.

    The loop never stops on its own: a failed shutdown is logged and the
    condition is evaluated again on the next tick.
    """

    def __init__(
        self,
        config_source: Callable[[], AppConfig],
        cpu_monitor: CpuMonitor,
        session_monitor: SessionMonitor,
        shutdown_sink: ShutdownSink,
        calibrator: Optional[Calibrator] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the decision loop.

        Args:
            config_source: Returns the configuration in force, called once per tick
            cpu_monitor: Owner of the CPU sample buffer
            session_monitor: Owner of the session sample buffer
            shutdown_sink: Receiver of shutdown requests
            calibrator: Source of the automatic threshold, AUTO mode only
            clock: Time source returning epoch seconds
        """
        self.config_source = config_source
        self.cpu_monitor = cpu_monitor
        self.session_monitor = session_monitor
        self.shutdown_sink = shutdown_sink
        self.calibrator = calibrator
        self.clock = clock
        self._last_config: Optional[AppConfig] = None

    def _current_config(self) -> AppConfig:
        try:
            self._last_config = self.config_source()
        except Exception as e:
            if self._last_config is None:
                raise
            logger.warning(f"Config reload failed: {e} - using last known config")
        return self._last_config

    def _learning_message(self, now: float) -> str:
        if self.calibrator is None:
            return "Learning phase: no calibrator available - skipping shutdown evaluation"
        remaining = self.calibrator.learning_time_remaining(now)
        if remaining <= 0:
            return "Learning phase: waiting for initial calibration - skipping shutdown evaluation"
        return f"Learning phase: {format_duration(remaining)} remaining - skipping shutdown evaluation"

    def current_threshold(self, config: AppConfig) -> Optional[float]:
        """
        The CPU threshold in force, or None while the automatic one is still
        being learned.
        """
        if not config.monitoring.is_auto:
            return float(config.monitoring.cpu_threshold)
        if self.calibrator is None or self.calibrator.is_learning():
            return None
        return self.calibrator.current_threshold

    def tick(self) -> TickOutcome:
        """Run one evaluation."""
        config = self._current_config()
        now = self.clock()

        threshold = self.current_threshold(config)
        if threshold is None:
            logger.info(self._learning_message(now))
            return TickOutcome.SKIPPED_LEARNING

        monitoring = config.monitoring
        logger.info(
            f"Evaluating: CPU={self.cpu_monitor.current_value():.2f}% "
            f"(threshold={threshold:.0f}%), Users={self.session_monitor.current_value()}"
        )

        cpu_idle = self.cpu_monitor.is_below_threshold(threshold, monitoring.cpu_check_minutes, now)
        no_users = self.session_monitor.no_sessions_for(monitoring.user_check_minutes, now)

        if not (cpu_idle and no_users):
            return TickOutcome.ACTIVE

        logger.warning(
            f"SHUTDOWN TRIGGERED - CPU < {threshold:.0f}% for {monitoring.cpu_check_minutes} min, "
            f"0 users for {monitoring.user_check_minutes} min"
        )
        try:
            self.shutdown_sink.shutdown(SHUTDOWN_REASON)
        except ShutdownError as e:
            logger.error(f"Shutdown command failed: {e}")
            return TickOutcome.SHUTDOWN_FAILED
        return TickOutcome.SHUTDOWN_REQUESTED
