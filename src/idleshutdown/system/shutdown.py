"""
Shutdown sinks.

The decision loop hands its shutdown request to a ShutdownSink. The
production sink runs the configured power-off command; in dry-run mode it
only logs what it would have done.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable

from ..validation import ShutdownError
from .commands import run_command

logger = logging.getLogger(__name__)

DEFAULT_SHUTDOWN_COMMAND = "shutdown -h now"


class ShutdownSink(ABC):
    """Receiver of shutdown requests."""

    @abstractmethod
    def shutdown(self, reason: str) -> None:
        """
        Power off the machine.

        Args:
            reason: Human-readable explanation for the logs

        Raises:
            ShutdownError: If the request could not be carried out
        """
        pass


class ShutdownExecutor(ShutdownSink):
    """
    Runs the power-off command.
    """

    def __init__(
        self,
        dry_run: bool = False,
        command: str = DEFAULT_SHUTDOWN_COMMAND,
        runner: Callable[[str], tuple] = run_command,
    ):
        """
        Args:
            dry_run: Log the command instead of running it
            command: Command line that powers off the host
            runner: Command runner returning (return_code, stdout, stderr)
        """
        self.dry_run = dry_run
        self.command = command
        self._runner = runner

    def shutdown(self, reason: str) -> None:
        logger.warning("=== SHUTDOWN INITIATED ===")
        logger.warning(f"Time: {datetime.now().astimezone().isoformat(timespec='seconds')}")
        logger.warning(f"Reason: {reason}")

        if self.dry_run:
            logger.warning(f"[DRY RUN] Would execute: {self.command}")
            return

        logger.warning(f"Executing: {self.command}")
        return_code, stdout, stderr = self._runner(self.command)
        if return_code != 0:
            output = (stderr or stdout).strip()
            raise ShutdownError(
                f"Shutdown command '{self.command}' failed with exit code {return_code}: {output}"
            )
