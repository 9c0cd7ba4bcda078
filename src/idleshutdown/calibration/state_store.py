"""
Durable storage of the calibration record.

The record is a small JSON document. Writes go to a temporary file in the
same directory which is flushed, fsynced and atomically renamed over the
previous version, so a crash mid-write leaves either the old or the new
record on disk, never a torn one.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from ..models.calibration import CalibrationState
from ..validation import StateStoreError, simple_retry

logger = logging.getLogger(__name__)


class CalibrationStateStore:
    """
    JSON file holding the CalibrationState.
    """

    def __init__(
        self,
        path: Union[str, Path],
        max_attempts: int = 3,
        retry_delay: float = 0.5,
    ):
        """
        Initialize the store.

        Args:
            path: Location of the state file
            max_attempts: Read attempts before giving up on an I/O error
            retry_delay: Delay between read attempts in seconds
        """
        self.path = Path(path)
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay

    def _read(self) -> Optional[bytes]:
        try:
            with open(self.path, "rb") as f:
                return f.read()
        except FileNotFoundError:
            return None

    def load(self) -> Optional[CalibrationState]:
        """
        Load the persisted record.

        Returns:
            The record, or None if there is no usable one. A file that
            cannot be parsed is reported and treated as absent.

        Raises:
            StateStoreError: If the file exists but cannot be read
        """
        try:
            raw = simple_retry(
                self._read,
                max_attempts=self.max_attempts,
                delay=self.retry_delay,
                context=f"reading calibration state {self.path}",
                retry_on=(OSError,),
            )
        except OSError as e:
            raise StateStoreError(f"Cannot read calibration state {self.path}: {e}") from e

        if raw is None:
            logger.debug(f"No calibration state at {self.path}")
            return None

        try:
            state = CalibrationState.from_dict(json.loads(raw.decode("utf-8")))
        except (
            UnicodeDecodeError,
            json.JSONDecodeError,
            KeyError,
            TypeError,
            ValueError,
            AttributeError,
        ) as e:
            logger.warning(f"Ignoring unreadable calibration state {self.path}: {type(e).__name__}: {e}")
            return None

        logger.debug(f"Loaded calibration state from {self.path}")
        return state

    def save(self, state: CalibrationState) -> None:
        """
        Atomically replace the persisted record.

        Raises:
            StateStoreError: If the record could not be written
        """
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(state.to_dict(), f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())

            os.replace(tmp_path, self.path)
            tmp_path = None
            logger.debug(f"Saved calibration state to {self.path}")

        except OSError as e:
            logger.error(f"Failed to save calibration state to {self.path}: {e}")
            raise StateStoreError(f"Cannot write calibration state {self.path}: {e}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
