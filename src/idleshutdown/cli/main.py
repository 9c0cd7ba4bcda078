"""
Command-line interface for the IdleShutdown agent.

This module provides the `idleshutdown` entry point: it loads the
configuration, wires sensors, monitors, calibrator and shutdown executor
into an IdleShutdownDaemon and runs it until SIGINT/SIGTERM.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .. import __version__
from ..calibration import CalibrationStateStore, Calibrator
from ..config import get_config, reload_config, set_config_path
from ..models.config import AppConfig
from ..monitoring import CpuMonitor, SessionMonitor
from ..orchestration import DecisionLoop, IdleShutdownDaemon
from ..sensors import PsutilCpuSensor, PsutilSessionSensor
from ..system import ShutdownExecutor, check_command_installed
from ..validation import handle_cli_error

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="idleshutdown",
        description="Power off this machine once it has been idle long enough.",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="Path to the config.toml file (defaults to conf/config.toml).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log the shutdown command instead of running it.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def build_daemon(app_config: AppConfig, dry_run: bool = False) -> IdleShutdownDaemon:
    """
    Wire the agent components for the given configuration.

    Args:
        app_config: Startup configuration
        dry_run: Force dry-run shutdowns regardless of the configuration

    Returns:
        A daemon ready to be run
    """
    scheduling = app_config.scheduling

    cpu_monitor = CpuMonitor(
        PsutilCpuSensor(),
        retention_seconds=scheduling.cpu_retention,
        sample_gap_seconds=scheduling.cpu_sample_gap_seconds,
    )
    session_monitor = SessionMonitor(
        PsutilSessionSensor(),
        retention_seconds=scheduling.session_retention,
    )

    calibrator = None
    if app_config.monitoring.is_auto:
        store = CalibrationStateStore(app_config.paths.state_file)
        calibrator = Calibrator(store, app_config.calibration)

    executor = ShutdownExecutor(
        dry_run=dry_run or app_config.shutdown.dry_run,
        command=app_config.shutdown.command,
    )
    if not executor.dry_run and not check_command_installed(executor.command):
        logger.warning(f"Shutdown command not found on PATH: {executor.command}")

    decision_loop = DecisionLoop(
        config_source=reload_config,
        cpu_monitor=cpu_monitor,
        session_monitor=session_monitor,
        shutdown_sink=executor,
        calibrator=calibrator,
    )

    return IdleShutdownDaemon(
        config=app_config,
        cpu_monitor=cpu_monitor,
        session_monitor=session_monitor,
        decision_loop=decision_loop,
        calibrator=calibrator,
    )


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for the IdleShutdown agent.

    Raises:
        SystemExit: On configuration errors.
    """
    args = build_parser().parse_args(argv)

    logger.info(f"IdleShutdown Agent {__version__} starting")
    if args.config:
        set_config_path(args.config)

    try:
        app_config = get_config()
    except Exception as e:
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=1,
            logger=logger,
        )

    if args.dry_run:
        logger.info("Dry-run mode: the shutdown command will only be logged")

    daemon = build_daemon(app_config, dry_run=args.dry_run)
    try:
        asyncio.run(daemon.run())
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main_cli()
