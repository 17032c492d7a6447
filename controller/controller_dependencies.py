# controller/controller_dependencies.py
from fastapi import Request
from config.settings import settings
from repository.job_repository import JobRepository
from service.job_service import JobService
from service.video_info_service import VideoInfoService


def get_job_service(request: Request) -> JobService:
    return request.app.state.job_service


def get_job_repository(request: Request) -> JobRepository:
    return request.app.state.jobs


def get_video_info_service(request: Request) -> VideoInfoService:
    return request.app.state.video_info_service


def get_poll_interval() -> float:
    return settings.STATUS_POLL_INTERVAL_MS / 1000.0
