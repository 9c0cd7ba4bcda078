"""
Validation and error handling for the idleshutdown package.

This module provides input validation, the agent's exception taxonomy and
error handling helpers with consistent error reporting across the application.
"""

from .exceptions import (
    CalibrationError,
    ErrorSeverity,
    IdleShutdownError,
    InsufficientSamplesError,
    NoStableWindowError,
    SensorError,
    ShutdownError,
    StateStoreError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
)

from .strategies import simple_retry

from .validators import (
    validate_bool,
    validate_positive_float,
    validate_positive_integer,
    validate_simple_command,
)

__all__ = [
    # Errors
    "ErrorSeverity",
    "ValidationError",
    "IdleShutdownError",
    "SensorError",
    "CalibrationError",
    "InsufficientSamplesError",
    "NoStableWindowError",
    "StateStoreError",
    "ShutdownError",
    "handle_error",
    "handle_config_error",
    "handle_cli_error",
    # Retry
    "simple_retry",
    # Validators
    "validate_bool",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_simple_command",
]
