# core/streaming.py
import asyncio
import logging
from typing import AsyncIterator, Final, Optional
from model.job import Job
from repository.job_repository import JobRepository
from util.enums import ErrorMessage
from util.types import DisconnectProbe, EventType

EVENT_SEP: Final[str] = "\n\n"
logger = logging.getLogger(__name__)


def sse_event(data: str, event: Optional[EventType] = None) -> bytes:
    """
    One Server-Sent Event. Unnamed events carry job snapshots; named "error"
    events are terminal markers.
    """
    head = f"event: {event}\n" if event and event != "snapshot" else ""
    return (f"{head}data: {data}{EVENT_SEP}").encode("utf-8")


def snapshot_event(job: Job) -> bytes:
    return sse_event(job.model_dump_json())


NOT_FOUND_EVENT: Final[bytes] = sse_event(
    ErrorMessage.JOB_NOT_FOUND.value.message, event="error"
)


async def make_status_stream(
    *,
    job_id: str,
    jobs: JobRepository,
    interval: float,
    is_disconnected: Optional[DisconnectProbe] = None,
) -> AsyncIterator[bytes]:
    """
    Every `interval` seconds read the job and emit a full snapshot:
      - unknown job: one "error" event, then stop
      - ready/failed: final snapshot, then stop
      - consumer gone: stop without reading further
    Read-only; closing the stream never touches the pipeline.
    """
    sent = 0
    try:
        while True:
            await asyncio.sleep(interval)
            if is_disconnected is not None and await is_disconnected():
                logger.info("stream.disconnect job=%s sent=%d", job_id, sent)
                return

            job = jobs.get(job_id)
            if job is None:
                logger.info("stream.not_found job=%s", job_id)
                yield NOT_FOUND_EVENT
                return

            yield snapshot_event(job)
            sent += 1
            if job.is_terminal:
                logger.info("stream.done job=%s status=%s sent=%d", job_id, job.status, sent)
                return
    except asyncio.CancelledError:
        logger.info("stream.cancelled job=%s sent=%d", job_id, sent)
        raise
