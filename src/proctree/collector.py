"""Process collection engine for proctree."""

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor

from proctree.errors import EntryUnreadable
from proctree.models import EntryResult, EntryStatus, ProcessRecord
from proctree.sources import ProcessSource

logger = logging.getLogger(__name__)


class ProcessCollector:
    """
    Collects a snapshot of process records from a process source.

    Entries that vanish or cannot be read between listing and reading are
    skipped; only a failure to list processes at all (SourceUnavailable) is
    raised to the caller.
    """

    def __init__(self, source: ProcessSource, workers: int = 1) -> None:
        """
        Initialize the ProcessCollector.

        Args:
            source: Process source to list and read processes from.
            workers: Number of threads used to read entries. Default 1.
        """
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        self._source = source
        self._workers = workers

    @property
    def workers(self) -> int:
        """Get the number of reader threads."""
        return self._workers

    def attempts(self) -> list[EntryResult]:
        """
        Read every listed process and return one tagged result per pid.

        Results are ordered by ascending pid regardless of worker count.
        """
        pids = sorted(self._source.list_pids())

        if self._workers == 1 or len(pids) < 2:
            return [self._attempt(pid) for pid in pids]

        with ThreadPoolExecutor(
            max_workers=self._workers,
            thread_name_prefix="ProcessCollector",
        ) as pool:
            return list(pool.map(self._attempt, pids))

    def collect(self) -> list[ProcessRecord]:
        """Return the records of all entries that were read successfully."""
        results = self.attempts()
        records = [result.record for result in results if result.ok]

        skipped = Counter(result.status for result in results if not result.ok)
        logger.debug(
            "Collected %d of %d processes (%d unreadable, %d inconsistent)",
            len(records),
            len(results),
            skipped[EntryStatus.UNREADABLE],
            skipped[EntryStatus.INCONSISTENT],
        )
        return records

    def _attempt(self, pid: int) -> EntryResult:
        """Read one entry, turning per-entry failures into tagged results."""
        try:
            record = self._source.read_status(pid)
        except EntryUnreadable as exc:
            logger.debug("Skipping pid %d: %s", pid, exc.reason)
            return EntryResult(pid=pid, status=EntryStatus.UNREADABLE, reason=exc.reason)

        if record.pid != pid:
            reason = f"record reports pid {record.pid}"
            logger.debug("Discarding pid %d: %s", pid, reason)
            return EntryResult(pid=pid, status=EntryStatus.INCONSISTENT, reason=reason)

        return EntryResult(pid=pid, status=EntryStatus.OK, record=record)
