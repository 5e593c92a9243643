"""Detect SavedVariables file changes by modification time and size."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from raidtrack.errors import TransientIOError


logger = logging.getLogger("raidtrack.ingest.change_detector")


class ChangeDetector:
    """Remembers the last (mtime, size) signature of one file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._signature: Optional[Tuple[int, int]] = None

    @property
    def signature(self) -> Optional[Tuple[int, int]]:
        return self._signature

    def check(self) -> bool:
        """
        Return True on first observation or when the signature changed.

        Raises:
            TransientIOError: the file could not be stat'ed; the stored
                signature is left untouched so the next call retries
        """
        try:
            stat = self.path.stat()
        except OSError as exc:
            raise TransientIOError(f"stat failed for {self.path}: {exc}") from exc

        signature = (stat.st_mtime_ns, stat.st_size)
        if signature == self._signature:
            return False

        self._signature = signature
        logger.debug("Change detected for %s: %s", self.path, signature)
        return True

    def reset(self) -> None:
        """Forget the signature so the next check reports a change."""
        self._signature = None
