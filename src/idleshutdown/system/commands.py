"""
Command execution utilities.

This module runs external system commands (the power-off command) and
checks that they are available on the host.
"""

import logging
import shlex
import shutil
import subprocess
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0


def split_command(command: str) -> List[str]:
    """Split a command line into argv, shell-style."""
    return shlex.split(command)


def run_command(
    command: str,
    timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
) -> Tuple[int, str, str]:
    """Execute a command and capture its output.

    Args:
        command: The command string to execute.
        timeout: Seconds to wait for the command before giving up.

    Returns:
        Tuple of (return_code, stdout_string, stderr_string).
        return_code is -1 for execution errors.
    """
    logger.debug(f"Executing command: '{command}'")
    try:
        process = subprocess.run(
            split_command(command),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
        return process.returncode, process.stdout, process.stderr
    except FileNotFoundError as e:
        program = split_command(command)[0]
        logger.error(f"Command not found: {program}: {type(e).__name__}: {e}")
        return -1, "", f"Error: Command not found '{program}'"
    except subprocess.TimeoutExpired:
        logger.error(f"Command timed out after {timeout}s: '{command}'")
        return -1, "", f"Error: Command timed out after {timeout}s"
    except Exception as e:
        logger.error(
            f"Unexpected error while running command '{command[:50]}': {type(e).__name__}: {e}",
            exc_info=True,
        )
        return -1, "", f"An unexpected error occurred: {e}"


def check_command_installed(command: str) -> bool:
    """Check whether the program of a command line is on the PATH."""
    try:
        argv = split_command(command)
    except ValueError:
        return False
    return bool(argv) and shutil.which(argv[0]) is not None
