"""Poll-driven ingestion of the SavedVariables file."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Optional, Union

from raidtrack.errors import DecodeError, TransientIOError
from raidtrack.ingest.change_detector import ChangeDetector
from raidtrack.ingest.export_decoder import ExportDecoder
from raidtrack.services.reconciler import RaidReconciler


logger = logging.getLogger("raidtrack.ingest")


@dataclass
class IngestionStatus:
    """Snapshot of the watcher state."""

    file_path: str
    export_key: str
    interval_seconds: int
    last_check_at: Optional[int] = None
    last_change_at: Optional[int] = None
    last_error: Optional[str] = None
    last_mode: Optional[str] = None
    raids_processed: int = 0
    raids_failed: int = 0
    records_skipped: int = 0


class IngestionService:
    """
    Runs decode cycles for one file.

    Cycles are serialized: a call made while another cycle is running waits
    for it instead of overlapping.
    """

    def __init__(
        self,
        path: Union[str, Path],
        decoder: ExportDecoder,
        reconciler: RaidReconciler,
        interval: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        self.path = Path(path)
        self.decoder = decoder
        self.reconciler = reconciler
        self.detector = ChangeDetector(self.path)
        self.clock = clock
        self._lock = asyncio.Lock()
        self._status = IngestionStatus(
            file_path=str(self.path),
            export_key=decoder.export_key,
            interval_seconds=interval,
        )

    def status(self) -> IngestionStatus:
        return replace(self._status)

    def _read_text(self) -> str:
        return self.path.read_text(encoding="utf-8", errors="replace")

    async def run_cycle(self) -> bool:
        """Check the file and reconcile its raids. Returns True if it changed."""
        async with self._lock:
            return await self._run_cycle()

    async def _run_cycle(self) -> bool:
        status = self._status
        now = int(self.clock())
        status.last_check_at = now

        try:
            changed = self.detector.check()
        except TransientIOError as exc:
            status.last_error = str(exc)
            logger.warning("%s", exc)
            return False
        if not changed:
            return False

        status.last_change_at = now
        logger.info("SavedVariables changed: %s", self.path)

        loop = asyncio.get_running_loop()
        try:
            text = await loop.run_in_executor(None, self._read_text)
        except OSError as exc:
            self.detector.reset()
            status.last_error = f"read failed for {self.path}: {exc}"
            logger.warning("%s", status.last_error)
            return False

        try:
            result = self.decoder.decode(text)
        except Exception as exc:
            status.last_error = str(exc)
            status.last_mode = None
            status.raids_processed = 0
            status.raids_failed = 0
            status.records_skipped = 0
            logger.error(
                "Decode failed for %s: %s",
                self.path,
                exc,
                exc_info=not isinstance(exc, DecodeError),
            )
            return True

        processed = 0
        failed = 0
        for scoped in result.raids:
            raid_id = scoped.payload.raid_id
            try:
                await self.reconciler.reconcile(scoped.scope, scoped.payload)
                processed += 1
            except Exception as exc:
                failed += 1
                logger.error("Raid %s failed: %s", raid_id, exc, exc_info=True)

        status.last_mode = result.mode
        status.raids_processed = processed
        status.raids_failed = failed
        status.records_skipped = len(result.skipped)
        status.last_error = f"{failed} raid(s) failed" if failed else None

        logger.info(
            "Ingestion cycle done (%s): %d processed, %d failed, %d skipped",
            result.mode,
            processed,
            failed,
            len(result.skipped),
        )
        return True
