"""
Exception types and error handling helpers.

This module provides the error taxonomy of the agent together with the
logging helpers used to report errors consistently across components.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when validation fails.

    This is the main exception type used by the configuration validators.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class IdleShutdownError(Exception):
    """Base class for runtime errors raised by the agent."""


class SensorError(IdleShutdownError):
    """A sensor could not produce a reading. Always transient."""


class CalibrationError(IdleShutdownError):
    """A calibration run did not produce a threshold."""


class InsufficientSamplesError(CalibrationError):
    """Too few samples inside the lookback period."""

    def __init__(self, available: int, required: int):
        super().__init__(f"insufficient samples ({available}, need {required})")
        self.available = available
        self.required = required


class NoStableWindowError(CalibrationError):
    """No sliding window was stable enough to serve as an idle baseline."""

    def __init__(self, loosest_bound: float):
        super().__init__(
            f"no stable idle window found (stddev always >= {loosest_bound:.1f}%)"
        )
        self.loosest_bound = loosest_bound


class StateStoreError(IdleShutdownError):
    """The calibration state file could not be read or written."""


class ShutdownError(IdleShutdownError):
    """The shutdown command failed."""


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Log a fatal CLI error and exit the process."""
    exit_code = kwargs.pop('exit_code', 1)
    kwargs.pop('include_traceback', None)

    severity = kwargs.pop('severity', ErrorSeverity.CRITICAL)
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)

    sys.exit(exit_code)
