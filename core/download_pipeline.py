# core/download_pipeline.py
import asyncio
import logging
import os
from core.entities import DownloadPaths, MediaFormat
from core.format_selector import format_height, select_formats
from core.media_source import MediaSource
from core.muxer import Muxer
from core.progress import ProgressTracker
from model.job import Job
from repository.job_repository import JobRepository
from util.constants import MAX_PRE_MUX_PERCENT
from util.errors import EmptyOutput
from util.functions import remove_quietly, sanitize_filename
from util.timing import timed

logger = logging.getLogger(__name__)


def output_filename(title: str, height: int) -> str:
    return f"{sanitize_filename(title)}_{height}p.mp4"


class DownloadPipeline:
    """
    metadata -> format selection -> parallel video/audio fetch -> mux -> validate.

    Raises PipelineError subclasses (or raw OSError etc.) on failure; the caller
    records the outcome on the job. Temp files are removed in every outcome.
    """

    def __init__(
        self,
        jobs: JobRepository,
        source: MediaSource,
        muxer: Muxer,
        temp_dir: str,
    ) -> None:
        self._jobs = jobs
        self._source = source
        self._muxer = muxer
        self._temp_dir = temp_dir

    def paths_for(self, job: Job) -> DownloadPaths:
        return DownloadPaths(
            video_temp=os.path.join(self._temp_dir, f"v_{job.id}.mp4"),
            audio_temp=os.path.join(self._temp_dir, f"a_{job.id}.m4a"),
            output=job.filePath,
        )

    async def process(self, job: Job, quality: str) -> None:
        with timed(logger, "pipeline", job=job.id):
            info = await self._source.fetch_metadata(job.videoId)
            video_fmt, audio_fmt = select_formats(info.formats, quality)
            height = format_height(video_fmt)
            self._jobs.set_filename(job.id, output_filename(info.title, height))
            logger.info(
                "pipeline.formats job=%s video=%s(%dp) audio=%s quality=%s",
                job.id,
                video_fmt.format_id,
                height,
                audio_fmt.format_id,
                quality,
            )

            paths = self.paths_for(job)
            tracker = ProgressTracker(
                video_fmt.content_length + audio_fmt.content_length,
                lambda pct: self._jobs.set_progress(job.id, pct),
            )
            try:
                await self._fetch_both(job, video_fmt, audio_fmt, paths, tracker)

                # downloads done, merge pending
                self._jobs.set_progress(job.id, MAX_PRE_MUX_PERCENT)
                try:
                    await self._muxer.mux(paths.video_temp, paths.audio_temp, paths.output)
                    self._validate_output(paths.output)
                except BaseException:
                    remove_quietly(paths.output)
                    raise
            finally:
                for p in paths.temps:
                    remove_quietly(p)

    async def _fetch_both(
        self,
        job: Job,
        video_fmt: MediaFormat,
        audio_fmt: MediaFormat,
        paths: DownloadPaths,
        tracker: ProgressTracker,
    ) -> None:
        tasks = [
            asyncio.create_task(self._download(video_fmt, paths.video_temp, tracker)),
            asyncio.create_task(self._download(audio_fmt, paths.audio_temp, tracker)),
        ]
        try:
            with timed(logger, "pipeline.fetch", job=job.id):
                await asyncio.gather(*tasks)
        except BaseException:
            # first failure wins; stop the sibling before its temp file is removed
            for t in tasks:
                t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        logger.info("pipeline.fetch.ok job=%s bytes=%d", job.id, tracker.bytes_read)

    async def _download(
        self, fmt: MediaFormat, path: str, tracker: ProgressTracker
    ) -> None:
        # blocking file I/O runs off the event loop
        fh = await asyncio.to_thread(open, path, "wb")
        try:
            async for chunk in self._source.open_stream(fmt):
                if not chunk:
                    continue
                await asyncio.to_thread(fh.write, chunk)
                tracker.add(len(chunk))
        finally:
            await asyncio.to_thread(fh.close)

    @staticmethod
    def _validate_output(path: str) -> None:
        try:
            size = os.path.getsize(path)
        except OSError as e:
            raise EmptyOutput(detail=f"missing output: {e}") from e
        if size == 0:
            raise EmptyOutput(detail="zero-byte output")
