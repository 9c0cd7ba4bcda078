"""
Unit tests for the idle-baseline statistics.

Sample series are laid out one minute apart so that a 30-minute window
holds 30 samples.
"""

import polars as pl
import pytest

from idleshutdown.calibration import (
    calibrate,
    compute_threshold,
    find_idle_baseline,
    samples_to_frame,
    window_statistics,
)
from idleshutdown.validation import InsufficientSamplesError, NoStableWindowError

from conftest import T0, cpu_series

MINUTE = 60.0
HOUR = 3600.0


def alternating(low: float, high: float, count: int):
    return [low if i % 2 == 0 else high for i in range(count)]


def segmented_history():
    """
    Three one-hour segments:

    - A: 2.8 / 3.2 alternating (mean 3.0, stddev 0.2)
    - a one-hour gap so no window straddles A and B
    - B: 1.2 / 2.8 alternating (mean 2.0, stddev 0.8)
    - busy: constant 40%, directly after B
    """
    samples = cpu_series(alternating(2.8, 3.2, 60), start=T0)
    samples += cpu_series(alternating(1.2, 2.8, 60), start=T0 + 2 * HOUR)
    samples += cpu_series([40.0] * 60, start=T0 + 3 * HOUR)
    return samples


@pytest.mark.unit
class TestWindowStatistics:
    """Test cases for the rolling forward windows."""

    def test_one_row_per_sample(self):
        frame = samples_to_frame(cpu_series([1.0] * 40))
        stats = window_statistics(frame)

        assert stats.height == 40
        assert set(stats.columns) >= {"count", "mean", "std"}

    def test_windows_look_forward_thirty_minutes(self):
        frame = samples_to_frame(cpu_series(list(range(40))))
        stats = window_statistics(frame)

        # Anchor 0 covers samples 0..29; the anchor 10 minutes from the end covers 10.
        assert stats["count"][0] == 30
        assert stats["mean"][0] == pytest.approx(14.5)
        assert stats["count"][30] == 10

    def test_population_standard_deviation(self):
        frame = samples_to_frame(cpu_series(alternating(1.0, 3.0, 30)))
        stats = window_statistics(frame)

        assert stats["std"][0] == pytest.approx(1.0)

    def test_empty_frame(self):
        stats = window_statistics(samples_to_frame([]))
        assert stats.is_empty()


@pytest.mark.unit
class TestFindIdleBaseline:
    """Test cases for baseline selection."""

    def test_windows_with_few_samples_are_ignored(self):
        stats = pl.DataFrame(
            {"count": [4, 6], "mean": [0.1, 2.0], "std": [0.0, 0.5]}
        )
        baseline, bound, windows = find_idle_baseline(stats)

        assert baseline == pytest.approx(2.0)
        assert bound == 1.0
        assert windows == 1

    def test_loose_bound_is_the_fallback(self):
        stats = pl.DataFrame({"count": [10, 10], "mean": [2.0, 4.0], "std": [1.5, 1.9]})
        baseline, bound, _ = find_idle_baseline(stats)

        assert baseline == pytest.approx(2.0)
        assert bound == 2.0

    def test_no_stable_window(self):
        stats = pl.DataFrame({"count": [10], "mean": [2.0], "std": [2.0]})
        with pytest.raises(NoStableWindowError):
            find_idle_baseline(stats)


@pytest.mark.unit
class TestComputeThreshold:
    """Test cases for threshold derivation."""

    @pytest.mark.parametrize(
        "baseline,expected",
        [(0.0, 5.0), (0.5, 5.0), (2.0, 5.0), (2.4, 5.0), (2.5, 6.0), (7.2, 10.0), (50.0, 53.0)],
    )
    def test_threshold(self, baseline, expected):
        assert compute_threshold(baseline) == expected


@pytest.mark.unit
class TestCalibrate:
    """Test cases for the full procedure."""

    def test_lowest_stable_window_wins(self):
        """Window A (3.0, sd 0.2) and window B (2.0, sd 0.8) both pass; B is lower."""
        samples = segmented_history()
        now = samples[-1].timestamp + MINUTE

        result = calibrate(samples, 5 * HOUR, now)

        assert result.idle_baseline == pytest.approx(2.0)
        assert result.threshold == 5.0
        assert result.stddev_bound == 1.0
        assert result.sample_count == 180

    def test_only_loose_windows(self):
        samples = cpu_series(alternating(0.5, 3.5, 60))
        now = samples[-1].timestamp + MINUTE

        result = calibrate(samples, 2 * HOUR, now)

        assert result.stddev_bound == 2.0
        assert result.threshold == 5.0

    def test_no_stable_windows(self):
        samples = cpu_series(alternating(0.0, 6.0, 60))
        now = samples[-1].timestamp + MINUTE

        with pytest.raises(NoStableWindowError):
            calibrate(samples, 2 * HOUR, now)

    def test_minimum_threshold_floor(self):
        samples = cpu_series([0.5] * 60)
        now = samples[-1].timestamp + MINUTE

        result = calibrate(samples, 2 * HOUR, now)

        assert result.idle_baseline == pytest.approx(0.5)
        assert result.threshold == 5.0

    def test_insufficient_samples(self):
        samples = cpu_series([1.0] * 9)
        now = samples[-1].timestamp + MINUTE

        with pytest.raises(InsufficientSamplesError) as exc_info:
            calibrate(samples, HOUR, now)

        assert exc_info.value.available == 9
        assert "insufficient samples (9, need 10)" in str(exc_info.value)

    def test_only_lookback_samples_are_used(self):
        """A quiet period older than the lookback does not lower the baseline."""
        samples = cpu_series([0.0] * 60, start=T0)
        samples += cpu_series([8.0] * 60, start=T0 + 3 * HOUR)
        now = samples[-1].timestamp + MINUTE

        result = calibrate(samples, 2 * HOUR, now)

        assert result.idle_baseline == pytest.approx(8.0)
        assert result.threshold == 11.0
        assert result.sample_count == 60
