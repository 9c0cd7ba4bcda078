"""
Active-session monitor.

Keeps a short rolling window of session counts; it only has to cover the
longest "no users" check window.
"""

import logging
import time
from typing import Callable, Optional, Tuple

from ..models.samples import SessionSample
from ..sensors.base import SessionSensor
from ..validation import SensorError
from .buffer import SampleBuffer
from .predicates import PredicateResult, no_active_sessions

logger = logging.getLogger(__name__)

DEFAULT_SESSION_RETENTION_SECONDS = 2 * 3600


class SessionMonitor:
    """
    Maintains the rolling window of active-session samples.
    """

    def __init__(
        self,
        sensor: SessionSensor,
        retention_seconds: float = DEFAULT_SESSION_RETENTION_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.sensor = sensor
        self.clock = clock
        self.buffer: SampleBuffer[SessionSample] = SampleBuffer(retention_seconds, name="sessions")

    def sample(self) -> Optional[SessionSample]:
        """
        Take one session reading and append it to the buffer.

        Returns:
            The stored sample, or None if the sensor failed this tick
        """
        try:
            sessions = frozenset(self.sensor.list_active_sessions())
        except SensorError as e:
            logger.warning(f"Error reading logged-in users: {e}")
            return None
        except Exception as e:
            logger.error(f"Unexpected error reading logged-in users: {type(e).__name__}: {e}", exc_info=True)
            return None

        now = self.clock()
        sample = SessionSample(timestamp=now, value=len(sessions), sessions=sessions)
        return self.buffer.append(sample, now=now)

    def current_value(self) -> int:
        """Most recent session count, 0 before the first sample."""
        latest = self.buffer.latest()
        return latest.value if latest is not None else 0

    def snapshot(self) -> Tuple[SessionSample, ...]:
        return self.buffer.snapshot()

    def no_sessions_for(self, minutes: int, now: Optional[float] = None) -> PredicateResult:
        """Whether no session was active for the last ``minutes``."""
        result = no_active_sessions(self.snapshot(), minutes, self.clock() if now is None else now)
        logger.info(result.reason)
        return result
