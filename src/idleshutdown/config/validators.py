"""
Configuration validation utilities.

This module turns raw TOML data into validated configuration models, one
function per section, plus cross-section consistency checks.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from ..models.config import (
    AppConfig,
    CalibrationConfig,
    MonitoringConfig,
    PathsConfig,
    SchedulingConfig,
    ShutdownConfig,
    SECONDS_PER_HOUR,
    SECONDS_PER_MINUTE,
)
from ..validation import (
    ValidationError,
    validate_bool,
    validate_positive_float,
    validate_positive_integer,
    validate_simple_command,
)

logger = logging.getLogger(__name__)


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ValidationError(f"[{name}] must be a table", field_name=name, value=section)
    return section


def validate_monitoring_config(monitoring_data: Dict[str, Any]) -> MonitoringConfig:
    """
    Validate the `[monitoring]` section.

    An absent `cpu_threshold` key selects automatic calibration.

    Raises:
        ValidationError: If validation fails
    """
    defaults = MonitoringConfig()

    cpu_check_minutes = validate_positive_integer(
        monitoring_data.get("cpu_check_minutes", defaults.cpu_check_minutes),
        min_value=1,
        max_value=7 * 24 * 60,
        field_name="monitoring.cpu_check_minutes",
    )
    user_check_minutes = validate_positive_integer(
        monitoring_data.get("user_check_minutes", defaults.user_check_minutes),
        min_value=1,
        max_value=7 * 24 * 60,
        field_name="monitoring.user_check_minutes",
    )

    cpu_threshold = None
    if "cpu_threshold" in monitoring_data:
        cpu_threshold = validate_positive_integer(
            monitoring_data["cpu_threshold"],
            min_value=0,
            max_value=100,
            field_name="monitoring.cpu_threshold",
        )

    return MonitoringConfig(
        cpu_check_minutes=cpu_check_minutes,
        user_check_minutes=user_check_minutes,
        cpu_threshold=cpu_threshold,
    )


def validate_calibration_config(calibration_data: Dict[str, Any]) -> CalibrationConfig:
    """
    Validate the `[calibration]` section.

    Raises:
        ValidationError: If validation fails
    """
    defaults = CalibrationConfig()

    return CalibrationConfig(
        initial_tracking_hours=validate_positive_float(
            calibration_data.get("initial_tracking_hours", defaults.initial_tracking_hours),
            min_value=0.5,  # one 30-minute window
            field_name="calibration.initial_tracking_hours",
        ),
        recalibration_interval_days=validate_positive_float(
            calibration_data.get("recalibration_interval_days", defaults.recalibration_interval_days),
            min_value=0.01,
            field_name="calibration.recalibration_interval_days",
        ),
        recalibration_tracking_hours=validate_positive_float(
            calibration_data.get("recalibration_tracking_hours", defaults.recalibration_tracking_hours),
            min_value=0.5,
            field_name="calibration.recalibration_tracking_hours",
        ),
    )


def validate_scheduling_config(scheduling_data: Dict[str, Any]) -> SchedulingConfig:
    """
    Validate the `[scheduling]` section.

    Raises:
        ValidationError: If validation fails
    """
    defaults = SchedulingConfig()

    return SchedulingConfig(
        sampling_interval_seconds=validate_positive_float(
            scheduling_data.get("sampling_interval_seconds", defaults.sampling_interval_seconds),
            min_value=1.0,
            max_value=600.0,
            field_name="scheduling.sampling_interval_seconds",
        ),
        evaluation_interval_seconds=validate_positive_float(
            scheduling_data.get("evaluation_interval_seconds", defaults.evaluation_interval_seconds),
            min_value=1.0,
            max_value=3600.0,
            field_name="scheduling.evaluation_interval_seconds",
        ),
        calibration_check_interval_seconds=validate_positive_float(
            scheduling_data.get(
                "calibration_check_interval_seconds", defaults.calibration_check_interval_seconds
            ),
            min_value=1.0,
            field_name="scheduling.calibration_check_interval_seconds",
        ),
        cpu_retention_hours=validate_positive_float(
            scheduling_data.get("cpu_retention_hours", defaults.cpu_retention_hours),
            min_value=0.5,
            field_name="scheduling.cpu_retention_hours",
        ),
        session_retention_hours=validate_positive_float(
            scheduling_data.get("session_retention_hours", defaults.session_retention_hours),
            min_value=0.1,
            field_name="scheduling.session_retention_hours",
        ),
        cpu_sample_gap_seconds=validate_positive_float(
            scheduling_data.get("cpu_sample_gap_seconds", defaults.cpu_sample_gap_seconds),
            min_value=0.01,
            max_value=5.0,
            field_name="scheduling.cpu_sample_gap_seconds",
        ),
    )


def validate_shutdown_config(shutdown_data: Dict[str, Any]) -> ShutdownConfig:
    """
    Validate the `[shutdown]` section.

    Raises:
        ValidationError: If validation fails
    """
    defaults = ShutdownConfig()

    return ShutdownConfig(
        command=validate_simple_command(
            shutdown_data.get("command", defaults.command),
            field_name="shutdown.command",
        ),
        dry_run=validate_bool(
            shutdown_data.get("dry_run", defaults.dry_run),
            field_name="shutdown.dry_run",
        ),
    )


def validate_paths_config(paths_data: Dict[str, Any], config_dir: Path) -> PathsConfig:
    """
    Validate the `[paths]` section. Relative paths resolve against `config_dir`.

    Raises:
        ValidationError: If validation fails
    """
    state_file = paths_data.get("state_file")
    if state_file is None:
        return PathsConfig()
    if not isinstance(state_file, str) or not state_file.strip():
        raise ValidationError(
            "paths.state_file must be a non-empty string",
            field_name="paths.state_file",
            value=state_file,
        )
    path = Path(state_file)
    if not path.is_absolute():
        path = config_dir / path
    return PathsConfig(state_file=path)


def _validate_windows_fit_retention(app_config: AppConfig) -> None:
    """
    Check that every lookback fits inside the buffer that serves it.

    A window longer than its buffer's retention can never hold enough
    samples, so the agent would silently never shut down or never calibrate.
    """
    monitoring = app_config.monitoring
    scheduling = app_config.scheduling
    calibration = app_config.calibration

    if monitoring.cpu_check_minutes * SECONDS_PER_MINUTE > scheduling.cpu_retention:
        raise ValidationError(
            f"monitoring.cpu_check_minutes ({monitoring.cpu_check_minutes}) exceeds "
            f"scheduling.cpu_retention_hours ({scheduling.cpu_retention_hours})",
            field_name="monitoring.cpu_check_minutes",
        )
    if monitoring.user_check_minutes * SECONDS_PER_MINUTE > scheduling.session_retention:
        raise ValidationError(
            f"monitoring.user_check_minutes ({monitoring.user_check_minutes}) exceeds "
            f"scheduling.session_retention_hours ({scheduling.session_retention_hours})",
            field_name="monitoring.user_check_minutes",
        )
    longest_lookback = max(calibration.initial_lookback, calibration.recalibration_lookback)
    if longest_lookback > scheduling.cpu_retention:
        raise ValidationError(
            f"calibration lookback ({longest_lookback / SECONDS_PER_HOUR:g}h) exceeds "
            f"scheduling.cpu_retention_hours ({scheduling.cpu_retention_hours})",
            field_name="scheduling.cpu_retention_hours",
        )


def validate_app_config(config_data: Dict[str, Any], config_dir: Path) -> AppConfig:
    """
    Validate a whole configuration document.

    Args:
        config_data: Parsed TOML data
        config_dir: Directory holding the config file (for relative paths)

    Returns:
        Validated AppConfig instance

    Raises:
        ValidationError: If validation fails
    """
    app_config = AppConfig(
        monitoring=validate_monitoring_config(_section(config_data, "monitoring")),
        calibration=validate_calibration_config(_section(config_data, "calibration")),
        scheduling=validate_scheduling_config(_section(config_data, "scheduling")),
        shutdown=validate_shutdown_config(_section(config_data, "shutdown")),
        paths=validate_paths_config(_section(config_data, "paths"), config_dir),
    )
    _validate_windows_fit_retention(app_config)
    return app_config
