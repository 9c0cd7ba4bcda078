"""
CPU usage monitor.

Turns cumulative counter readings into busy-percentage samples and keeps
them in a long rolling buffer that serves both the idle predicate and the
calibrator.
"""

import logging
import time
from typing import Callable, Optional, Tuple

from ..models.samples import CpuCounters, CpuSample
from ..sensors.base import CpuSensor
from ..validation import SensorError
from .buffer import SampleBuffer
from .predicates import PredicateResult, is_cpu_idle

logger = logging.getLogger(__name__)

DEFAULT_CPU_RETENTION_SECONDS = 72 * 3600
DEFAULT_SAMPLE_GAP_SECONDS = 0.1


def compute_busy_percent(first: CpuCounters, second: CpuCounters) -> float:
    """
    Busy percentage between two counter readings.

    Returns 0.0 when no time elapsed between the readings (or the counters
    went backwards), and never leaves [0, 100].
    """
    busy_delta = second.busy_ticks - first.busy_ticks
    idle_delta = second.idle_ticks - first.idle_ticks
    total_delta = busy_delta + idle_delta

    if total_delta <= 0:
        return 0.0

    usage = busy_delta / total_delta * 100.0
    return min(100.0, max(0.0, usage))


class CpuMonitor:
    """
    Maintains the rolling window of CPU busy samples.

    `sample()` is meant to be called on a fixed cadence by a single periodic
    task; every other method is safe to call from any thread.
    """

    def __init__(
        self,
        sensor: CpuSensor,
        retention_seconds: float = DEFAULT_CPU_RETENTION_SECONDS,
        sample_gap_seconds: float = DEFAULT_SAMPLE_GAP_SECONDS,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the CPU monitor.

        Args:
            sensor: Source of cumulative CPU counters
            retention_seconds: Retention horizon of the buffer
            sample_gap_seconds: Delay between the two counter reads of a sample
            clock: Time source returning epoch seconds
            sleep: Blocking sleep used between the two counter reads
        """
        self.sensor = sensor
        self.sample_gap_seconds = sample_gap_seconds
        self.clock = clock
        self._sleep = sleep
        self.buffer: SampleBuffer[CpuSample] = SampleBuffer(retention_seconds, name="cpu")

    def _read_usage(self) -> float:
        first = self.sensor.read_cpu_counters()
        self._sleep(self.sample_gap_seconds)
        second = self.sensor.read_cpu_counters()
        return compute_busy_percent(first, second)

    def sample(self) -> Optional[CpuSample]:
        """
        Take one CPU reading and append it to the buffer.

        Returns:
            The stored sample, or None if the sensor failed this tick
        """
        try:
            usage = self._read_usage()
        except SensorError as e:
            logger.warning(f"Error reading CPU usage: {e}")
            return None
        except Exception as e:
            logger.error(f"Unexpected error reading CPU usage: {type(e).__name__}: {e}", exc_info=True)
            return None

        now = self.clock()
        return self.buffer.append(CpuSample(timestamp=now, value=usage), now=now)

    def current_value(self) -> float:
        """Most recent busy percentage, 0.0 before the first sample."""
        latest = self.buffer.latest()
        return latest.value if latest is not None else 0.0

    def snapshot(self) -> Tuple[CpuSample, ...]:
        return self.buffer.snapshot()

    def is_below_threshold(
        self, threshold: float, minutes: int, now: Optional[float] = None
    ) -> PredicateResult:
        """Whether CPU stayed strictly below ``threshold`` for the last ``minutes``."""
        result = is_cpu_idle(
            self.snapshot(), minutes, threshold, self.clock() if now is None else now
        )
        logger.info(result.reason)
        return result
