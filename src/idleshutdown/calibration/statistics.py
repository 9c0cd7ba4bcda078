"""
Idle-baseline statistics.

The idle baseline of a machine is the lowest mean CPU usage over all
sufficiently stable 30-minute stretches of its recent history. Stretches are
forward-looking sliding windows anchored at every sample; a window is stable
when the population standard deviation of its values is below a bound. A
tight bound is tried first, then a looser one.

The window statistics are computed with a polars rolling aggregation over a
datetime index.
"""

import logging
import math
from datetime import timedelta
from typing import Sequence, Tuple

import polars as pl

from ..models.calibration import CalibrationResult
from ..models.samples import CpuSample
from ..validation import InsufficientSamplesError, NoStableWindowError

logger = logging.getLogger(__name__)

# Added to the idle baseline to get the operating threshold.
THRESHOLD_BUFFER = 3.0
# The threshold never goes below this, so a near-zero baseline cannot
# produce a threshold that flaps on noise.
MIN_THRESHOLD = 5.0
# Stability bounds (max stddev in percentage points), tightest first.
STDDEV_BOUNDS: Tuple[float, ...] = (1.0, 2.0)
WINDOW_DURATION = timedelta(minutes=30)
MIN_WINDOW_SAMPLES = 5
MIN_CALIBRATION_SAMPLES = 10

_STATS_SCHEMA = {"ts": pl.Datetime("us"), "count": pl.UInt32, "mean": pl.Float64, "std": pl.Float64}


def samples_to_frame(samples: Sequence[CpuSample]) -> pl.DataFrame:
    """Columnar view of CPU samples: `timestamp` (epoch seconds) and `value`."""
    return pl.DataFrame(
        {
            "timestamp": [s.timestamp for s in samples],
            "value": [float(s.value) for s in samples],
        },
        schema={"timestamp": pl.Float64, "value": pl.Float64},
    )


def select_lookback(frame: pl.DataFrame, lookback_seconds: float, now: float) -> pl.DataFrame:
    """Rows strictly newer than ``now - lookback_seconds``."""
    return frame.filter(pl.col("timestamp") > now - lookback_seconds)


def window_statistics(
    frame: pl.DataFrame, window: timedelta = WINDOW_DURATION
) -> pl.DataFrame:
    """
    Statistics of the forward window anchored at every sample.

    The window of the sample taken at ``t`` covers ``[t, t + window)``.

    Returns:
        One row per sample with columns `ts`, `count`, `mean` and `std`
        (population standard deviation).
    """
    if frame.is_empty():
        return pl.DataFrame(schema=_STATS_SCHEMA)

    indexed = (
        frame.with_columns(
            pl.from_epoch(
                (pl.col("timestamp") * 1_000_000).round(0).cast(pl.Int64), time_unit="us"
            ).alias("ts")
        )
        .sort("ts")
    )

    return indexed.rolling(
        index_column="ts",
        period=window,
        offset=timedelta(0),
        closed="left",
    ).agg(
        pl.len().alias("count"),
        pl.col("value").mean().alias("mean"),
        pl.col("value").std(ddof=0).alias("std"),
    )


def find_idle_baseline(
    stats: pl.DataFrame,
    min_window_samples: int = MIN_WINDOW_SAMPLES,
    stddev_bounds: Sequence[float] = STDDEV_BOUNDS,
) -> Tuple[float, float, int]:
    """
    Pick the idle baseline from per-window statistics.

    Args:
        stats: Output of window_statistics()
        min_window_samples: Windows with fewer samples are ignored
        stddev_bounds: Stability bounds to try, tightest first

    Returns:
        (baseline, accepted stddev bound, number of windows within that bound)

    Raises:
        NoStableWindowError: If no window is stable under any bound
    """
    candidates = stats.filter(pl.col("count") >= min_window_samples)

    for bound in stddev_bounds:
        stable = candidates.filter(pl.col("std") < bound)
        if stable.height > 0:
            baseline = float(stable["mean"].min())
            logger.info(f"Found idle baseline={baseline:.2f}% with stddev < {bound:.1f}%")
            return baseline, bound, stable.height
        logger.info(f"No stable windows with stddev < {bound:.1f}%, loosening...")

    raise NoStableWindowError(stddev_bounds[-1])


def compute_threshold(
    idle_baseline: float,
    buffer: float = THRESHOLD_BUFFER,
    minimum: float = MIN_THRESHOLD,
) -> float:
    """``max(baseline + buffer, minimum)`` rounded half-up to a whole percent."""
    return float(math.floor(max(idle_baseline + buffer, minimum) + 0.5))


def calibrate(
    samples: Sequence[CpuSample], lookback_seconds: float, now: float
) -> CalibrationResult:
    """
    Derive a CPU threshold from the samples of the last ``lookback_seconds``.

    Args:
        samples: CPU buffer snapshot
        lookback_seconds: How far back to look
        now: Reference time (epoch seconds)

    Returns:
        The new threshold and the evidence it was derived from

    Raises:
        InsufficientSamplesError: Fewer than MIN_CALIBRATION_SAMPLES samples in the lookback
        NoStableWindowError: No stable idle window exists
    """
    frame = select_lookback(samples_to_frame(samples), lookback_seconds, now)
    if frame.height < MIN_CALIBRATION_SAMPLES:
        raise InsufficientSamplesError(frame.height, MIN_CALIBRATION_SAMPLES)

    logger.info(f"Calibrating on {frame.height} samples from last {lookback_seconds / 3600:g}h")

    baseline, bound, window_count = find_idle_baseline(window_statistics(frame))
    threshold = compute_threshold(baseline)

    logger.info(f"Idle baseline={baseline:.2f}%, new threshold={threshold:.0f}%")
    return CalibrationResult(
        threshold=threshold,
        idle_baseline=baseline,
        stddev_bound=bound,
        sample_count=frame.height,
        window_count=window_count,
    )
