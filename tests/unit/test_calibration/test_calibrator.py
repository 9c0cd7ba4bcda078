"""
Unit tests for the Calibrator lifecycle.
"""

from unittest.mock import Mock

import pytest

from idleshutdown.calibration import CalibrationStateStore, Calibrator
from idleshutdown.models import CalibrationPhase, CalibrationState
from idleshutdown.models.config import CalibrationConfig
from idleshutdown.validation import InsufficientSamplesError, NoStableWindowError, StateStoreError

from conftest import T0, cpu_series

HOUR = 3600.0
DAY = 24 * HOUR


@pytest.fixture
def store(temp_dir):
    return CalibrationStateStore(temp_dir / "calibration.json", retry_delay=0)


@pytest.fixture
def calibration_config():
    return CalibrationConfig(
        initial_tracking_hours=24,
        recalibration_interval_days=7,
        recalibration_tracking_hours=72,
    )


def quiet_history(end: float, hours: float = 24, value: float = 2.0):
    """One sample per minute ending just before ``end``."""
    count = int(hours * 60)
    return cpu_series([value] * count, start=end - count * 60.0)


@pytest.mark.unit
class TestLearningPhase:
    """Test cases for the initial learning phase."""

    def test_fresh_start_is_learning_and_persisted(self, store, calibration_config, clock):
        calibrator = Calibrator(store, calibration_config, clock=clock)

        assert calibrator.phase is CalibrationPhase.LEARNING
        assert calibrator.is_learning()
        assert calibrator.state.start_time == T0
        assert store.load() == CalibrationState(start_time=T0)

    def test_learning_time_remaining(self, store, calibration_config, clock):
        calibrator = Calibrator(store, calibration_config, clock=clock)

        assert calibrator.learning_time_remaining() == pytest.approx(DAY)
        clock.advance(10 * HOUR)
        assert calibrator.learning_time_remaining() == pytest.approx(14 * HOUR)
        clock.advance(20 * HOUR)
        assert calibrator.learning_time_remaining() == 0.0
        # elapsed time alone never ends the learning phase
        assert calibrator.is_learning()

    def test_initial_not_due_before_learning_period(self, store, calibration_config, clock):
        calibrator = Calibrator(store, calibration_config, clock=clock)
        clock.advance(DAY - 1)

        assert not calibrator.should_run_initial()
        assert calibrator.check_and_run(quiet_history(clock.now)) is None
        assert calibrator.is_learning()

    def test_restart_keeps_learning_start_time(self, store, calibration_config, clock):
        """Restarting the agent does not reset the learning phase."""
        Calibrator(store, calibration_config, clock=clock)
        clock.advance(20 * HOUR)

        restarted = Calibrator(store, calibration_config, clock=clock)

        assert restarted.state.start_time == T0
        assert restarted.learning_time_remaining() == pytest.approx(4 * HOUR)

    def test_unreadable_state_starts_new_learning_phase(self, calibration_config, clock):
        broken = Mock(spec=CalibrationStateStore)
        broken.load.side_effect = StateStoreError("permission denied")

        calibrator = Calibrator(broken, calibration_config, clock=clock)

        assert calibrator.is_learning()
        broken.save.assert_called_once()

    def test_undecodable_state_file_starts_new_learning_phase(self, store, calibration_config, clock):
        store.path.write_bytes(b"\xff\xfe{\"start_time\": 1}")

        calibrator = Calibrator(store, calibration_config, clock=clock)

        assert calibrator.is_learning()
        assert calibrator.state.start_time == T0
        assert store.load() == CalibrationState(start_time=T0)


@pytest.mark.unit
class TestInitialCalibration:
    """Test cases for the first calibration."""

    def test_initial_calibration_completes(self, store, calibration_config, clock):
        calibrator = Calibrator(store, calibration_config, clock=clock)
        clock.advance(DAY)

        result = calibrator.check_and_run(quiet_history(clock.now))

        assert result is not None
        assert result.threshold == 5.0
        assert calibrator.phase is CalibrationPhase.CALIBRATED
        assert calibrator.current_threshold == 5.0
        assert calibrator.idle_baseline == pytest.approx(2.0)
        state = store.load()
        assert state.initial_done is True
        assert state.last_calibration_time == clock.now

    def test_insufficient_samples_leave_state_untouched(self, store, calibration_config, clock):
        calibrator = Calibrator(store, calibration_config, clock=clock)
        clock.advance(DAY)
        before = calibrator.state

        with pytest.raises(InsufficientSamplesError):
            calibrator.run(quiet_history(clock.now, hours=0.1), calibration_config.initial_lookback)

        assert calibrator.state == before
        assert store.load() == before
        assert calibrator.is_learning()

    def test_failed_check_is_retried(self, store, calibration_config, clock):
        """check_and_run swallows calibration errors and tries again next time."""
        calibrator = Calibrator(store, calibration_config, clock=clock)
        clock.advance(DAY)

        assert calibrator.check_and_run([]) is None
        assert calibrator.should_run_initial()

        clock.advance(HOUR)
        assert calibrator.check_and_run(quiet_history(clock.now)) is not None

    def test_initial_done_never_reverts(self, store, calibration_config, clock):
        calibrator = Calibrator(store, calibration_config, clock=clock)
        clock.advance(DAY)
        calibrator.check_and_run(quiet_history(clock.now))

        clock.advance(8 * DAY)
        noisy = cpu_series([0.0, 6.0] * 2000, start=clock.now - 4000 * 60.0)
        with pytest.raises(NoStableWindowError):
            calibrator.run(noisy, calibration_config.recalibration_lookback)

        assert calibrator.phase is CalibrationPhase.CALIBRATED
        assert calibrator.current_threshold == 5.0
        assert Calibrator(store, calibration_config, clock=clock).phase is CalibrationPhase.CALIBRATED

    def test_listeners_are_notified(self, store, calibration_config, clock):
        calibrator = Calibrator(store, calibration_config, clock=clock)
        listener = Mock()
        failing = Mock(side_effect=RuntimeError("boom"))
        calibrator.add_threshold_listener(failing)
        calibrator.add_threshold_listener(listener)
        clock.advance(DAY)

        result = calibrator.check_and_run(quiet_history(clock.now))

        listener.assert_called_once_with(result)
        failing.assert_called_once_with(result)

    def test_persistence_failure_is_not_fatal(self, calibration_config, clock):
        flaky = Mock(spec=CalibrationStateStore)
        flaky.load.return_value = CalibrationState(start_time=T0)
        flaky.save.side_effect = StateStoreError("read-only file system")
        calibrator = Calibrator(flaky, calibration_config, clock=clock)
        clock.advance(DAY)

        result = calibrator.check_and_run(quiet_history(clock.now))

        assert result is not None
        assert calibrator.current_threshold == result.threshold


@pytest.mark.unit
class TestRecalibration:
    """Test cases for periodic recalibration."""

    def _calibrated(self, store, calibration_config, clock):
        calibrator = Calibrator(store, calibration_config, clock=clock)
        clock.advance(DAY)
        calibrator.check_and_run(quiet_history(clock.now))
        return calibrator

    def test_not_due_before_interval(self, store, calibration_config, clock):
        calibrator = self._calibrated(store, calibration_config, clock)
        clock.advance(7 * DAY - 1)

        assert not calibrator.should_run_recalibration()
        assert calibrator.check_and_run(quiet_history(clock.now, hours=72, value=8.0)) is None

    def test_recalibration_replaces_threshold(self, store, calibration_config, clock):
        """The new threshold is a full recompute, not a blend with the old one."""
        calibrator = self._calibrated(store, calibration_config, clock)
        clock.advance(7 * DAY)

        result = calibrator.check_and_run(quiet_history(clock.now, hours=72, value=8.0))

        assert result.threshold == 11.0
        assert calibrator.current_threshold == 11.0
        assert store.load().last_calibration_time == clock.now

    def test_restored_calibrated_state(self, store, calibration_config, clock):
        store.save(
            CalibrationState(
                start_time=T0 - 10 * DAY,
                initial_done=True,
                last_calibration_time=T0 - DAY,
                current_threshold=9.0,
                idle_baseline=5.5,
            )
        )

        calibrator = Calibrator(store, calibration_config, clock=clock)

        assert not calibrator.is_learning()
        assert calibrator.current_threshold == 9.0
        assert calibrator.learning_time_remaining() == 0.0
        assert not calibrator.should_run_initial()
        clock.advance(6 * DAY)
        assert calibrator.should_run_recalibration()
