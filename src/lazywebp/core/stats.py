from __future__ import annotations

import logging
import threading
import time

from lazywebp.core.models import FailedFile

logger = logging.getLogger(__name__)


class RunStatistics:
    """Counters shared by every conversion of one run.

    All mutations take ``_lock``; worker threads call the ``record_*`` methods
    concurrently.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.processed = 0
        self.skipped = 0
        self.failed: list[FailedFile] = []
        self.total_files = 0
        self.total_input_bytes = 0
        self.saved_bytes = 0
        self.start_time: float | None = None
        self.end_time: float | None = None

    def start_timer(self) -> None:
        with self._lock:
            self.start_time = time.monotonic()
            self.end_time = None

    def stop_timer(self) -> None:
        with self._lock:
            self.end_time = time.monotonic()

    @property
    def elapsed_seconds(self) -> float:
        with self._lock:
            if self.start_time is None or self.end_time is None:
                return 0.0
            return self.end_time - self.start_time

    def add_task(self) -> None:
        with self._lock:
            self.total_files += 1

    def record_advisory_skip(self) -> None:
        with self._lock:
            self.total_files += 1
            self.skipped += 1

    def record_skipped(self, count: int = 1) -> None:
        with self._lock:
            self.skipped += count
            skipped = self.skipped
        logger.debug("Recorded %d skipped file(s) (total: %d)", count, skipped)

    def record_processed(self, input_bytes: int, output_bytes: int) -> None:
        with self._lock:
            self.processed += 1
            self.total_input_bytes += input_bytes
            self.saved_bytes += input_bytes - output_bytes

    def record_failure(self, file: str, error: str) -> None:
        with self._lock:
            self.failed.append(FailedFile(file=file, error=error))
        logger.debug("Recorded failed conversion for %s: %s", file, error)

    def saved_so_far(self) -> int:
        with self._lock:
            return self.saved_bytes

    def is_reconciled(self) -> bool:
        with self._lock:
            return self.total_files == self.processed + self.skipped + len(self.failed)
