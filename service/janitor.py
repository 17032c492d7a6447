# service/janitor.py
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from repository.job_repository import JobRepository
from util.functions import remove_quietly

logger = logging.getLogger(__name__)


class Janitor:
    """
    Evicts job records older than the retention window together with their
    output files. In-flight jobs are evicted too when retention is shorter
    than a download.
    """

    def __init__(
        self, jobs: JobRepository, *, retention_seconds: float, interval_seconds: float
    ) -> None:
        self._jobs = jobs
        self._retention = timedelta(seconds=retention_seconds)
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task] = None

    def sweep(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        cutoff = now - self._retention
        evicted = 0
        for job in self._jobs.created_before(cutoff):
            remove_quietly(job.filePath)
            if self._jobs.delete(job.id) is not None:
                evicted += 1
                logger.info("janitor.evict job=%s status=%s", job.id, job.status)
        if evicted:
            logger.info("janitor.sweep evicted=%d remaining=%d", evicted, len(self._jobs))
        return evicted

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.sweep()
            except Exception:
                logger.error("janitor.sweep.error", exc_info=True)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop(), name="janitor")
            logger.info(
                "janitor.start every=%ss retention=%ss",
                self._interval,
                int(self._retention.total_seconds()),
            )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
