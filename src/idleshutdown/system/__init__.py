"""
Host-level operations: running commands and powering off.
"""

from .commands import check_command_installed, run_command, split_command
from .shutdown import DEFAULT_SHUTDOWN_COMMAND, ShutdownExecutor, ShutdownSink

__all__ = [
    "run_command",
    "split_command",
    "check_command_installed",
    "ShutdownSink",
    "ShutdownExecutor",
    "DEFAULT_SHUTDOWN_COMMAND",
]
