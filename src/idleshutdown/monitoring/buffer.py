"""
Thread-safe rolling sample buffer.

A SampleBuffer holds the samples of one metric, oldest first, and forgets
everything older than its retention horizon. It is written by exactly one
sampling task and read by any number of evaluators through snapshots.
"""

import dataclasses
import logging
import threading
from collections import deque
from typing import Deque, Generic, Optional, Protocol, Tuple, TypeVar

logger = logging.getLogger(__name__)


class TimestampedSample(Protocol):
    timestamp: float


S = TypeVar("S", bound=TimestampedSample)


class SampleBuffer(Generic[S]):
    """
    Append-only, time-ordered window of samples.

    Invariants:
        - timestamps are non-decreasing from oldest to newest;
        - after append() or prune(now) no sample is at or before
          ``now - retention_seconds``.
    """

    def __init__(self, retention_seconds: float, name: str = "samples"):
        """
        Initialize the buffer.

        Args:
            retention_seconds: Retention horizon in seconds
            name: Label used in log messages
        """
        if retention_seconds <= 0:
            raise ValueError(f"retention_seconds must be positive, got {retention_seconds}")
        self.retention_seconds = retention_seconds
        self.name = name
        self._samples: Deque[S] = deque()
        self._lock = threading.Lock()

    def append(self, sample: S, now: Optional[float] = None) -> S:
        """
        Append a sample and prune expired entries.

        A sample older than the newest retained one (wall clock stepped
        backwards) is stored with the newest timestamp instead, which keeps
        the ordering invariant without losing the reading.

        Args:
            sample: The sample to append
            now: Reference time for pruning, defaults to the sample's timestamp

        Returns:
            The sample as stored
        """
        with self._lock:
            if self._samples and sample.timestamp < self._samples[-1].timestamp:
                last_timestamp = self._samples[-1].timestamp
                logger.debug(
                    f"{self.name}: clock went backwards by "
                    f"{last_timestamp - sample.timestamp:.3f}s, clamping sample timestamp"
                )
                sample = dataclasses.replace(sample, timestamp=last_timestamp)
            self._samples.append(sample)
            self._prune_locked(sample.timestamp if now is None else now)
        return sample

    def prune(self, now: float) -> int:
        """
        Drop samples at or before ``now - retention_seconds``.

        Returns:
            Number of samples removed
        """
        with self._lock:
            return self._prune_locked(now)

    def _prune_locked(self, now: float) -> int:
        cutoff = now - self.retention_seconds
        removed = 0
        while self._samples and self._samples[0].timestamp <= cutoff:
            self._samples.popleft()
            removed += 1
        return removed

    def snapshot(self) -> Tuple[S, ...]:
        """Immutable copy of all retained samples, oldest first."""
        with self._lock:
            return tuple(self._samples)

    def latest(self) -> Optional[S]:
        """The newest sample, or None when the buffer is empty."""
        with self._lock:
            return self._samples[-1] if self._samples else None

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)
