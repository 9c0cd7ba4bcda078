"""
IdleShutdown: power off idle machines.

The agent samples CPU usage and logged-in sessions, and powers the machine
off once CPU has stayed below a threshold and nobody has been logged in for
long enough. The threshold is either fixed in the configuration or learned
from the machine's own idle behavior.

The package is organized into specialized modules:
- config: Configuration management and validation
- models: Data structures and type definitions
- validation: Input validation and error handling
- sensors: CPU counter and session readers
- monitoring: Rolling sample buffers and idle predicates
- calibration: Automatic threshold calibration and its durable state
- system: Command execution and the shutdown executor
- orchestration: Decision loop, periodic tasks and the daemon
- cli: Command-line interface

Usage:
    From command line:
        idleshutdown --config /etc/idleshutdown/config.toml [--dry-run]
"""

__version__ = "1.0.0"

# Main interfaces
from .config import clear_config_cache, get_config, reload_config, set_config_path

# Model classes for external use
from .models import (
    AppConfig,
    CalibrationResult,
    CalibrationState,
    CpuSample,
    SessionSample,
    ThresholdMode,
)

from .validation import (
    CalibrationError,
    IdleShutdownError,
    ShutdownError,
    ValidationError,
)

from .calibration import CalibrationStateStore, Calibrator
from .monitoring import CpuMonitor, SessionMonitor
from .orchestration import DecisionLoop, IdleShutdownDaemon, TickOutcome
from .system import ShutdownExecutor, ShutdownSink

__all__ = [
    "__version__",
    # Main interfaces
    "get_config",
    "reload_config",
    "clear_config_cache",
    "set_config_path",
    # Models
    "AppConfig",
    "CalibrationResult",
    "CalibrationState",
    "CpuSample",
    "SessionSample",
    "ThresholdMode",
    # Errors
    "IdleShutdownError",
    "CalibrationError",
    "ShutdownError",
    "ValidationError",
    # Components
    "Calibrator",
    "CalibrationStateStore",
    "CpuMonitor",
    "SessionMonitor",
    "DecisionLoop",
    "IdleShutdownDaemon",
    "TickOutcome",
    "ShutdownExecutor",
    "ShutdownSink",
]
