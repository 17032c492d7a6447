# repository/job_repository.py
import os
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
from uuid import uuid4
from model.job import Job, JobStatus


class JobRepository:
    """
    In-memory job table. Every read returns a copy taken under the lock and
    every write replaces fields under the same lock, so readers never see a
    status without its matching percentage/error.
    """

    def __init__(
        self,
        download_dir: str,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._download_dir = download_dir
        self._clock = clock
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()

    # ---------------- Core CRUD ----------------

    def create(self, video_id: str) -> Job:
        job_id = str(uuid4())
        job = Job(
            id=job_id,
            videoId=video_id,
            status="pending",
            filePath=os.path.join(self._download_dir, f"{job_id}.mp4"),
            createdAt=self._clock(),
        )
        with self._lock:
            self._jobs[job_id] = job
            return job.model_copy()

    def get(self, job_id: str) -> Optional[Job]:
        if not job_id:
            return None
        with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy() if job is not None else None

    def delete(self, job_id: str) -> Optional[Job]:
        with self._lock:
            return self._jobs.pop(job_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    # ---------------- Status helpers ----------------

    def set_status(
        self,
        job_id: str,
        status: JobStatus,
        *,
        percentage: Optional[float] = None,
        error: Optional[str] = None,
    ) -> bool:
        """
        Replace (status, percentage, error) as one unit; `percentage=None` keeps
        the current value. Returns False when the job has already been evicted.
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return False
            pct = job.percentage if percentage is None else percentage
            self._jobs[job_id] = job.model_copy(
                update={"status": status, "percentage": pct, "error": error}
            )
            return True

    def set_progress(self, job_id: str, percentage: float) -> bool:
        """
        Raise the percentage of a processing job; lower values are ignored.
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.status != "processing":
                return False
            if percentage <= job.percentage:
                return False
            self._jobs[job_id] = job.model_copy(update={"percentage": percentage})
            return True

    def set_filename(self, job_id: str, filename: str) -> bool:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.filename:
                return False
            self._jobs[job_id] = job.model_copy(update={"filename": filename})
            return True

    # ---------------- Retention ----------------

    def created_before(self, cutoff: datetime) -> List[Job]:
        with self._lock:
            return [j.model_copy() for j in self._jobs.values() if j.createdAt < cutoff]
