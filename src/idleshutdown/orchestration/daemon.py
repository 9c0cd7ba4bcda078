"""
Agent process wiring.

IdleShutdownDaemon runs the periodic tasks of the agent on one asyncio event
loop: CPU sampling, session sampling, the calibration check (AUTO mode only)
and the shutdown decision. It runs until request_stop() is called or the
process receives SIGINT/SIGTERM.
"""

import asyncio
import logging
import signal
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from ..calibration import Calibrator
from ..models.calibration import CalibrationResult
from ..models.config import AppConfig
from ..monitoring import CpuMonitor, SessionMonitor
from .decision_loop import DecisionLoop, format_duration
from .scheduler import PeriodicTask

logger = logging.getLogger(__name__)


class IdleShutdownDaemon:
    """
    Owns the periodic tasks and their shared stop signal.
    """

    def __init__(
        self,
        config: AppConfig,
        cpu_monitor: CpuMonitor,
        session_monitor: SessionMonitor,
        decision_loop: DecisionLoop,
        calibrator: Optional[Calibrator] = None,
        install_signal_handlers: bool = True,
    ):
        """
        Initialize the daemon.

        Args:
            config: Startup configuration, supplies the task cadences
            cpu_monitor: CPU sampler
            session_monitor: Session sampler
            decision_loop: Shutdown decision evaluated on every decision tick
            calibrator: Threshold calibrator, AUTO mode only
            install_signal_handlers: Map SIGINT/SIGTERM onto request_stop()
        """
        self.config = config
        self.cpu_monitor = cpu_monitor
        self.session_monitor = session_monitor
        self.decision_loop = decision_loop
        self.calibrator = calibrator
        self.install_signal_handlers = install_signal_handlers

        self.tasks: List[PeriodicTask] = []
        self._stop_event = asyncio.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._executor: Optional[ThreadPoolExecutor] = None

        if self.calibrator is not None:
            self.calibrator.add_threshold_listener(self._on_threshold_applied)

    @property
    def is_running(self) -> bool:
        return self._loop is not None and not self._stop_event.is_set()

    def _on_threshold_applied(self, result: CalibrationResult) -> None:
        logger.info(
            f"New CPU threshold {result.threshold:.0f}% applies from the next evaluation"
        )

    def _run_calibration_check(self) -> None:
        self.calibrator.check_and_run(self.cpu_monitor.snapshot())

    def build_tasks(self) -> List[PeriodicTask]:
        """Create the periodic tasks for the configured mode."""
        scheduling = self.config.scheduling
        tasks = [
            PeriodicTask(
                "cpu-sampler",
                scheduling.sampling_interval_seconds,
                self.cpu_monitor.sample,
                self._stop_event,
                self._executor,
                run_immediately=True,
            ),
            PeriodicTask(
                "session-sampler",
                scheduling.sampling_interval_seconds,
                self.session_monitor.sample,
                self._stop_event,
                self._executor,
                run_immediately=True,
            ),
        ]
        if self.calibrator is not None:
            tasks.append(
                PeriodicTask(
                    "calibration-check",
                    scheduling.calibration_check_interval_seconds,
                    self._run_calibration_check,
                    self._stop_event,
                    self._executor,
                )
            )
        tasks.append(
            PeriodicTask(
                "decision",
                scheduling.evaluation_interval_seconds,
                self.decision_loop.tick,
                self._stop_event,
                self._executor,
            )
        )
        return tasks

    def log_startup(self) -> None:
        monitoring = self.config.monitoring
        logger.info(
            f"Sampling every {self.config.scheduling.sampling_interval_seconds}s, "
            f"evaluating every {self.config.scheduling.evaluation_interval_seconds}s "
            f"(CPU window {monitoring.cpu_check_minutes} min, "
            f"user window {monitoring.user_check_minutes} min)"
        )

        if not monitoring.is_auto:
            logger.info(f"Mode: MANUAL - cpu_threshold = {monitoring.cpu_threshold}%")
            return

        logger.info("Mode: AUTO - cpu_threshold is not set")
        if self.calibrator is None:
            logger.warning("No calibrator configured - shutdown evaluation stays paused")
        elif self.calibrator.is_learning():
            remaining = self.calibrator.learning_time_remaining()
            logger.info(
                f"Learning phase: {format_duration(remaining)} remaining - shutdown evaluation PAUSED"
            )
        else:
            calibration = self.calibrator.config
            logger.info(f"Calibrated threshold: {self.calibrator.current_threshold:.0f}%")
            logger.info(
                f"Recalibration: every {calibration.recalibration_interval_days} days "
                f"using {calibration.recalibration_tracking_hours}h of data"
            )

    def _setup_signal_handlers(self) -> None:
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                self._loop.add_signal_handler(sig, self._handle_signal, sig)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                logger.warning(f"Failed to set up handler for {sig.name}: {e}")

    def _cleanup_signal_handlers(self) -> None:
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                self._loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                logger.debug(f"Failed to remove handler for {sig.name}: {e}")

    def _handle_signal(self, sig: signal.Signals) -> None:
        logger.warning(f"Received signal {sig.name}, shutting down gracefully...")
        self.request_stop()

    def request_stop(self) -> None:
        """Ask every task to finish. Safe to call from any thread."""
        loop = self._loop
        if loop is not None and not loop.is_closed():
            loop.call_soon_threadsafe(self._stop_event.set)
        else:
            self._stop_event.set()

    async def run(self) -> None:
        """Run all periodic tasks until a stop is requested."""
        self._loop = asyncio.get_running_loop()
        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="IdleShutdown")
        if self.install_signal_handlers:
            self._setup_signal_handlers()

        try:
            self.log_startup()
            self.tasks = self.build_tasks()
            logger.info("Entering evaluation loop...")
            await asyncio.gather(
                *(asyncio.create_task(task.run(), name=task.name) for task in self.tasks)
            )
        finally:
            if self.install_signal_handlers:
                self._cleanup_signal_handlers()
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None
            self._loop = None
            logger.info("IdleShutdown agent stopped.")
