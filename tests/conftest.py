"""
Pytest configuration and shared fixtures for the IdleShutdown test suite.

This module provides common fixtures, test doubles and configuration
for all test modules in the IdleShutdown project.
"""

import shutil
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Set
from unittest.mock import Mock

import pytest
import toml

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from idleshutdown.config import clear_config_cache, get_config_path, set_config_path
from idleshutdown.models import CpuCounters, CpuSample, SessionSample
from idleshutdown.sensors import CpuSensor, SessionSensor
from idleshutdown.system import ShutdownSink
from idleshutdown.validation import SensorError

# Fixed reference time (2024-01-01 00:00:00 UTC).
T0 = 1_704_067_200.0


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "e2e: mark test as an end-to-end test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Test Doubles
# ============================================================================


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = T0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class ScriptedCpuSensor(CpuSensor):
    """
    CPU sensor producing a given busy percentage per sample.

    Every call to `set_usage` makes the next pair of reads differ by 100
    ticks split according to that percentage.
    """

    def __init__(self, usage: float = 0.0):
        self._busy = 0.0
        self._idle = 0.0
        self._reads = 0
        self.usage = usage
        self.fail = False

    def set_usage(self, usage: float) -> None:
        self.usage = usage

    def read_cpu_counters(self) -> CpuCounters:
        if self.fail:
            raise SensorError("sensor unavailable")
        if self._reads % 2 == 1:
            self._busy += self.usage
            self._idle += 100.0 - self.usage
        self._reads += 1
        return CpuCounters(busy_ticks=self._busy, idle_ticks=self._idle)


class ScriptedSessionSensor(SessionSensor):
    """Session sensor returning a settable set of user names."""

    def __init__(self, sessions: Iterable[str] = ()):
        self.sessions: Set[str] = set(sessions)
        self.fail = False

    def list_active_sessions(self) -> Set[str]:
        if self.fail:
            raise SensorError("utmp unreadable")
        return set(self.sessions)


class RecordingShutdownSink(ShutdownSink):
    """Shutdown sink that records requests instead of powering off."""

    def __init__(self, error: Exception = None):
        self.reasons: List[str] = []
        self.error = error

    def shutdown(self, reason: str) -> None:
        self.reasons.append(reason)
        if self.error is not None:
            raise self.error


def cpu_series(values: Iterable[float], start: float = T0, step: float = 60.0) -> List[CpuSample]:
    """CPU samples with the given values, ``step`` seconds apart."""
    return [CpuSample(timestamp=start + i * step, value=v) for i, v in enumerate(values)]


def session_series(counts: Iterable[int], start: float = T0, step: float = 60.0) -> List[SessionSample]:
    """Session samples with the given counts, ``step`` seconds apart."""
    return [
        SessionSample(
            timestamp=start + i * step,
            value=c,
            sessions=frozenset(f"user{n}" for n in range(c)),
        )
        for i, c in enumerate(counts)
    ]


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def clock():
    """A fake clock starting at T0."""
    return FakeClock()


@pytest.fixture
def cpu_sensor():
    return ScriptedCpuSensor()


@pytest.fixture
def session_sensor():
    return ScriptedSessionSensor()


@pytest.fixture
def shutdown_sink():
    return RecordingShutdownSink()


@pytest.fixture
def mock_shutdown_runner():
    """Command runner mock reporting success."""
    return Mock(return_value=(0, "", ""))


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def sample_config_data() -> Dict[str, Any]:
    """Sample configuration data for testing (MANUAL mode)."""
    return {
        "monitoring": {
            "cpu_check_minutes": 60,
            "user_check_minutes": 60,
            "cpu_threshold": 25,
        },
        "calibration": {
            "initial_tracking_hours": 24,
            "recalibration_interval_days": 7,
            "recalibration_tracking_hours": 72,
        },
        "scheduling": {
            "sampling_interval_seconds": 30,
            "evaluation_interval_seconds": 60,
            "calibration_check_interval_seconds": 3600,
            "cpu_retention_hours": 72,
            "session_retention_hours": 2,
            "cpu_sample_gap_seconds": 0.1,
        },
        "shutdown": {
            "command": "shutdown -h now",
            "dry_run": True,
        },
        "paths": {
            "state_file": "state/calibration.json",
        },
    }


@pytest.fixture
def write_config(temp_dir):
    """Write a config dict as TOML and return the file path."""

    def _write(data: Dict[str, Any], name: str = "config.toml") -> Path:
        path = temp_dir / name
        with open(path, "w") as f:
            toml.dump(data, f)
        return path

    return _write


@pytest.fixture
def isolated_config():
    """Restore the global configuration path and cache after the test."""
    original_path = get_config_path()
    clear_config_cache()
    yield
    set_config_path(original_path)
    clear_config_cache()
