# controller/job_controller.py
import os
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import FileResponse, StreamingResponse
from core.streaming import make_status_stream
from model.api import CreateJobRequest, CreateJobResponse
from model.job import Job
from repository.job_repository import JobRepository
from service.job_service import JobService
from util.constants import InternalURIs, OUTPUT_MEDIA_TYPE
from util.enums import ErrorMessage
from util.errors import AppError
from controller.controller_dependencies import (
    get_job_repository,
    get_job_service,
    get_poll_interval,
)

job_router = APIRouter()


@job_router.post(
    InternalURIs.JOB,
    response_model=CreateJobResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def create_job(
    payload: CreateJobRequest,
    service: JobService = Depends(get_job_service),
) -> CreateJobResponse:
    job = await service.create(payload.videoId, payload.quality)
    return CreateJobResponse(
        jobId=job.id,
        status="pending",
        streamUrl=f"{InternalURIs.EVENTS}/{job.id}",
        downloadUrl=f"{InternalURIs.DOWNLOAD}/{job.id}",
    )


@job_router.get(InternalURIs.JOB_DETAIL, response_model=Job)
async def get_job(job_id: str, service: JobService = Depends(get_job_service)) -> Job:
    return service.get(job_id)


@job_router.get(InternalURIs.EVENTS_DETAIL)
async def stream_job_events(
    job_id: str,
    request: Request,
    jobs: JobRepository = Depends(get_job_repository),
    interval: float = Depends(get_poll_interval),
):
    generator = make_status_stream(
        job_id=job_id,
        jobs=jobs,
        interval=interval,
        is_disconnected=request.is_disconnected,
    )
    return StreamingResponse(
        generator,
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@job_router.get(InternalURIs.DOWNLOAD_DETAIL)
async def download_output(
    job_id: str, service: JobService = Depends(get_job_service)
) -> FileResponse:
    job = service.get(job_id)
    if job.status != "ready":
        raise AppError.of(ErrorMessage.NOT_READY)
    if not os.path.isfile(job.filePath):
        # evicted between the status read and now
        raise AppError.of(ErrorMessage.JOB_NOT_FOUND)
    return FileResponse(
        job.filePath,
        media_type=OUTPUT_MEDIA_TYPE,
        filename=job.filename or os.path.basename(job.filePath),
    )
