# main.py
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import routes
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.middleware.cors import CORSMiddleware
from config.filesystem import prepare_filesystem
from config.settings import settings
from core.download_pipeline import DownloadPipeline
from core.media_source import MediaSource, YtDlpMediaSource
from core.muxer import FfmpegMuxer, Muxer
from model.api import HealthResponse
from repository.job_repository import JobRepository
from service.janitor import Janitor
from service.job_service import JobService
from service.video_info_service import VideoInfoService
from util.enums import Environment, Color
from util.logger import init_logger

logger = logging.getLogger(__name__)


def create_app(
    *, source: Optional[MediaSource] = None, muxer: Optional[Muxer] = None
) -> FastAPI:
    """
    Build the app. `source`/`muxer` default to yt-dlp/httpx and ffmpeg.
    """

    @asynccontextmanager
    async def lifespan(fastApi: FastAPI):
        init_logger()
        print(f"{Color.GREEN}Initializing...{Color.RESET}")
        try:
            prepare_filesystem(settings.DOWNLOAD_DIR, settings.TEMP_DIR)
        except OSError as e:
            logger.critical("fs.prepare.error err=%s", e)
            raise

        media = source or YtDlpMediaSource()
        jobs = JobRepository(settings.DOWNLOAD_DIR)
        pipeline = DownloadPipeline(
            jobs, media, muxer or FfmpegMuxer(), settings.TEMP_DIR
        )
        job_service = JobService(
            jobs,
            pipeline,
            max_concurrent=settings.MAX_CONCURRENT_JOBS,
            admission_timeout=settings.ADMISSION_TIMEOUT_SECONDS,
            default_quality=settings.DEFAULT_QUALITY,
        )
        janitor = Janitor(
            jobs,
            retention_seconds=settings.retention_seconds,
            interval_seconds=settings.JANITOR_INTERVAL_SECONDS,
        )

        fastApi.state.jobs = jobs
        fastApi.state.job_service = job_service
        fastApi.state.video_info_service = VideoInfoService(media)
        fastApi.state.janitor = janitor
        janitor.start()
        print(
            f"{Color.BLUE}Server Started{Color.RESET} "
            f"(slots={settings.MAX_CONCURRENT_JOBS})"
        )

        try:
            yield
        finally:
            await janitor.stop()
            await job_service.shutdown()
            print(f"{Color.RED}Server Shutdown{Color.RESET}")

    app = FastAPI(lifespan=lifespan)

    origins = settings.allowed_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.get("/healthz", response_model=HealthResponse)
    async def healthz():
        return HealthResponse(ok=True)

    routes.register_routes(app)

    # Static UI last so it never shadows /api routes
    if os.path.isdir(settings.WEB_DIR):
        app.mount("/", StaticFiles(directory=settings.WEB_DIR, html=True), name="web")

    return app


app: FastAPI = create_app()

if __name__ == "__main__":
    import uvicorn

    reload = settings.APP_ENV == Environment.DEV
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, reload=reload)
