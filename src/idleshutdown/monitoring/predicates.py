"""
Idle predicates over sample snapshots.

Each predicate answers "has condition C held for every sample of the last N
minutes?". They are pure functions of their inputs and keep no memory
between calls, so a single spike anywhere in the window fails the check for
as long as that spike stays inside the window.

Too few samples in the window never counts as idle: a gap in the data must
not be mistaken for a gap in activity.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence, TypeVar

from ..models.samples import CpuSample, SessionSample
from .buffer import TimestampedSample

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=TimestampedSample)


@dataclass(frozen=True)
class PredicateResult:
    """
    Verdict of one predicate evaluation.

    Truthy when the condition held over the whole window.
    """

    satisfied: bool
    sample_count: int
    required: int
    reason: str

    def __bool__(self) -> bool:
        return self.satisfied


def minimum_samples(minutes: int) -> int:
    """Roughly one sample per two minutes of window, at least one."""
    return max(1, minutes // 2)


def select_window(samples: Iterable[S], minutes: int, now: float) -> List[S]:
    """Samples strictly newer than ``now - minutes``."""
    cutoff = now - minutes * 60
    return [s for s in samples if s.timestamp > cutoff]


def _evaluate(
    samples: Sequence[S],
    minutes: int,
    now: float,
    holds: Callable[[S], bool],
    describe_failure: Callable[[S], str],
    label: str,
) -> PredicateResult:
    window = select_window(samples, minutes, now)
    required = minimum_samples(minutes)

    if len(window) < required:
        return PredicateResult(
            satisfied=False,
            sample_count=len(window),
            required=required,
            reason=f"{label}: insufficient samples ({len(window)}/{required}) for {minutes} minute window",
        )

    for sample in window:
        if not holds(sample):
            return PredicateResult(
                satisfied=False,
                sample_count=len(window),
                required=required,
                reason=f"{label}: {describe_failure(sample)}",
            )

    return PredicateResult(
        satisfied=True,
        sample_count=len(window),
        required=required,
        reason=f"{label}: condition held for all {len(window)} samples over last {minutes} minutes",
    )


def is_cpu_idle(
    samples: Sequence[CpuSample], minutes: int, threshold: float, now: float
) -> PredicateResult:
    """
    True iff every CPU sample of the last ``minutes`` is strictly below ``threshold``.

    Args:
        samples: CPU buffer snapshot, oldest first
        minutes: Window length in minutes
        threshold: Busy percentage that counts as activity
        now: Evaluation time (epoch seconds)
    """
    return _evaluate(
        samples,
        minutes,
        now,
        holds=lambda s: s.value < threshold,
        describe_failure=lambda s: f"usage {s.value:.2f}% >= threshold {threshold:g}% at {s.timestamp:.0f}",
        label="CPU check",
    )


def no_active_sessions(
    samples: Sequence[SessionSample], minutes: int, now: float
) -> PredicateResult:
    """
    True iff every session sample of the last ``minutes`` shows zero sessions.

    Args:
        samples: Session buffer snapshot, oldest first
        minutes: Window length in minutes
        now: Evaluation time (epoch seconds)
    """
    return _evaluate(
        samples,
        minutes,
        now,
        holds=lambda s: s.value == 0,
        describe_failure=lambda s: (
            f"{s.value} session(s) active at {s.timestamp:.0f}: {sorted(s.sessions)}"
        ),
        label="User check",
    )
