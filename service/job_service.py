# service/job_service.py
import asyncio
import logging
import re
from typing import Dict, Optional
from core.download_pipeline import DownloadPipeline
from model.job import Job
from repository.job_repository import JobRepository
from util.constants import VIDEO_ID_PATTERN
from util.enums import ErrorMessage
from util.errors import AppError, Busy, PipelineError, sanitize_error

logger = logging.getLogger(__name__)

_VIDEO_ID_RE = re.compile(VIDEO_ID_PATTERN)


def is_valid_video_id(video_id: str | None) -> bool:
    return bool(video_id) and _VIDEO_ID_RE.fullmatch(video_id) is not None


class JobService:
    """
    Owns job creation and the admission gate.

    Each created job gets exactly one background task. The task waits at most
    `admission_timeout` seconds for one of `max_concurrent` slots; if none
    frees up the job fails with "Server busy" and never fetches anything.
    """

    def __init__(
        self,
        jobs: JobRepository,
        pipeline: DownloadPipeline,
        *,
        max_concurrent: int,
        admission_timeout: float,
        default_quality: str,
    ) -> None:
        self._jobs = jobs
        self._pipeline = pipeline
        self._slots = asyncio.Semaphore(max(1, max_concurrent))
        self._admission_timeout = admission_timeout
        self._default_quality = default_quality
        self._tasks: Dict[str, asyncio.Task] = {}

    @property
    def running(self) -> int:
        return len(self._tasks)

    async def create(self, video_id: str, quality: Optional[str] = None) -> Job:
        """
        Validate, register a pending job and schedule its pipeline. Returns
        without waiting for the download.
        """
        if not is_valid_video_id(video_id):
            logger.info("job.reject reason=invalid_video_id")
            raise AppError.of(ErrorMessage.INVALID_VIDEO_ID)

        quality = (quality or "").strip() or self._default_quality
        job = self._jobs.create(video_id)
        task = asyncio.create_task(self._run(job.id, quality), name=f"job-{job.id}")
        self._tasks[job.id] = task
        task.add_done_callback(lambda _t, jid=job.id: self._tasks.pop(jid, None))
        logger.info("job.created job=%s video=%s quality=%s", job.id, video_id, quality)
        return job

    def get(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise AppError.of(ErrorMessage.JOB_NOT_FOUND)
        return job

    async def _run(self, job_id: str, quality: str) -> None:
        try:
            await asyncio.wait_for(
                self._slots.acquire(), timeout=self._admission_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                "job.busy job=%s waited=%.1fs", job_id, self._admission_timeout
            )
            self._jobs.set_status(job_id, "failed", percentage=0.0, error=Busy().message)
            return

        try:
            if not self._jobs.set_status(job_id, "processing", percentage=0.0):
                logger.warning("job.evicted.before_start job=%s", job_id)
                return
            job = self._jobs.get(job_id)
            if job is None:
                return
            await self._pipeline.process(job, quality)
        except PipelineError as e:
            logger.error(
                "job.failed job=%s kind=%s detail=%s",
                job_id,
                type(e).__name__,
                e.detail,
            )
            self._jobs.set_status(job_id, "failed", error=e.message)
        except Exception as e:
            logger.error("job.failed job=%s kind=%s", job_id, type(e).__name__, exc_info=True)
            self._jobs.set_status(job_id, "failed", error=sanitize_error(e))
        else:
            self._jobs.set_status(job_id, "ready", percentage=100.0)
            logger.info("job.ready job=%s", job_id)
        finally:
            self._slots.release()

    async def shutdown(self) -> None:
        """Cancel in-flight jobs (process exit only)."""
        tasks = list(self._tasks.values())
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("job.shutdown cancelled=%d", len(tasks))
