"""
Atomic file writes for downloaded reference data
"""

import logging
import os
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class AtomicFileWriter:
    """
    Write a file through a sibling temp file and rename it into place.

    The destination is either fully replaced or left as it was; readers
    never observe a partially written file under the final name.
    """

    def __init__(self, dest_path: Union[str, Path], permissions: int = 0o644):
        """
        Args:
            dest_path: Final file location
            permissions: Mode applied before the rename
        """
        self.dest_path = Path(dest_path)
        self.tmp_path = self.dest_path.with_name(self.dest_path.name + ".tmp")
        self.permissions = permissions
        self.bytes_written = 0
        self._handle = None

    def __enter__(self) -> "AtomicFileWriter":
        self.dest_path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = open(self.tmp_path, "wb")
        self.bytes_written = 0
        return self

    def write(self, chunk: bytes) -> None:
        self._handle.write(chunk)
        self.bytes_written += len(chunk)

    def __exit__(self, exc_type, exc, tb) -> bool:
        handle, self._handle = self._handle, None
        try:
            handle.close()
            if exc_type is None:
                os.chmod(self.tmp_path, self.permissions)
                os.replace(self.tmp_path, self.dest_path)
        except OSError:
            self._discard()
            raise

        if exc_type is not None:
            self._discard()
            return False

        logger.debug(f"Wrote {self.bytes_written} bytes to {self.dest_path}")
        return False

    def _discard(self) -> None:
        """Remove the temp file left by a failed write"""
        try:
            self.tmp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temp file {self.tmp_path}: {e}")
