import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Ensure tests can import project packages regardless of how pytest is invoked.
ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

from core.entities import MediaFormat, MediaInfo  # noqa: E402
from core.download_pipeline import DownloadPipeline  # noqa: E402
from repository.job_repository import JobRepository  # noqa: E402
from service.job_service import JobService  # noqa: E402

VIDEO_ID = "dQw4w9WgXcQ"


def default_formats() -> List[MediaFormat]:
    return [
        MediaFormat("137", "video", ext="mp4", mime_type="video/mp4",
                    quality_label="1080p", height=1080, content_length=8),
        MediaFormat("298", "video", ext="mp4", mime_type="video/mp4",
                    quality_label="720p60", height=720, fps=60, content_length=6),
        MediaFormat("251", "audio", ext="webm", mime_type="audio/webm",
                    content_length=4),
        MediaFormat("140", "audio", ext="m4a", mime_type="audio/mp4",
                    content_length=4),
        MediaFormat("18", "other", ext="mp4", height=360),
    ]


class FakeSource:
    """
    In-memory media source. Streams `content_length` bytes per format in
    2-byte chunks; can fail metadata or a specific stream, or hold metadata
    until `gate` is set.
    """

    def __init__(
        self,
        *,
        title: str = "My Video: Part 1?",
        formats: Optional[List[MediaFormat]] = None,
        metadata_error: Optional[BaseException] = None,
        stream_errors: Optional[Dict[str, BaseException]] = None,
        gate: Optional[asyncio.Event] = None,
    ) -> None:
        self.title = title
        self.formats = default_formats() if formats is None else formats
        self.metadata_error = metadata_error
        self.stream_errors = stream_errors or {}
        self.gate = gate
        self.active = 0
        self.max_active = 0
        self.metadata_calls = 0

    async def fetch_metadata(self, video_id: str) -> MediaInfo:
        self.metadata_calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                await self.gate.wait()
            if self.metadata_error is not None:
                raise self.metadata_error
            return MediaInfo(title=self.title, formats=list(self.formats))
        finally:
            self.active -= 1

    async def open_stream(self, fmt: MediaFormat):
        remaining = fmt.content_length or 4
        first = True
        while remaining > 0:
            if not first and fmt.format_id in self.stream_errors:
                raise self.stream_errors[fmt.format_id]
            first = False
            n = min(2, remaining)
            remaining -= n
            await asyncio.sleep(0)
            yield b"\x01" * n
        if fmt.format_id in self.stream_errors:
            raise self.stream_errors[fmt.format_id]


class FakeMuxer:
    def __init__(self, *, error: Optional[BaseException] = None, empty: bool = False):
        self.error = error
        self.empty = empty
        self.calls: List[tuple] = []

    async def mux(self, video_path: str, audio_path: str, output_path: str) -> None:
        self.calls.append((video_path, audio_path, output_path))
        if self.error is not None:
            raise self.error
        with open(output_path, "wb") as out:
            if self.empty:
                return
            for p in (video_path, audio_path):
                with open(p, "rb") as src:
                    out.write(src.read())


async def wait_terminal(jobs: JobRepository, job_id: str, timeout: float = 5.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        job = jobs.get(job_id)
        if job is not None and job.is_terminal:
            return job
        await asyncio.sleep(0.005)
    raise AssertionError(f"job {job_id} did not finish")


@pytest.fixture()
def dirs(tmp_path: Path):
    downloads = tmp_path / "downloads"
    temp = tmp_path / "temp"
    downloads.mkdir()
    temp.mkdir()
    return downloads, temp


@pytest.fixture()
def build_service(dirs):
    downloads, temp = dirs

    def _build(
        source: Optional[FakeSource] = None,
        muxer: Optional[FakeMuxer] = None,
        *,
        max_concurrent: int = 2,
        admission_timeout: float = 1.0,
    ):
        jobs = JobRepository(str(downloads))
        pipeline = DownloadPipeline(
            jobs, source or FakeSource(), muxer or FakeMuxer(), str(temp)
        )
        service = JobService(
            jobs,
            pipeline,
            max_concurrent=max_concurrent,
            admission_timeout=admission_timeout,
            default_quality="1080p",
        )
        return service, jobs

    return _build
