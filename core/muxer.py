# core/muxer.py
import asyncio
import logging
from typing import List, Protocol

from config.settings import settings
from util.errors import MuxFailure
from util.timing import timed

logger = logging.getLogger(__name__)


class Muxer(Protocol):
    async def mux(self, video_path: str, audio_path: str, output_path: str) -> None: ...


class FfmpegMuxer:
    """
    Merge a video-only and an audio-only file into one container with
    `-c copy` (no re-encode). Raises MuxFailure on non-zero exit or when
    ffmpeg cannot be started; stderr is only logged.
    """

    def __init__(self, ffmpeg_bin: str = settings.FFMPEG_BIN) -> None:
        self._bin = ffmpeg_bin

    def command(self, video_path: str, audio_path: str, output_path: str) -> List[str]:
        return [
            self._bin,
            "-y",
            "-hide_banner",
            "-loglevel",
            "error",
            "-i",
            video_path,
            "-i",
            audio_path,
            "-c",
            "copy",
            output_path,
        ]

    async def mux(self, video_path: str, audio_path: str, output_path: str) -> None:
        cmd = self.command(video_path, audio_path, output_path)
        with timed(logger, "mux.ffmpeg"):
            try:
                proc = await asyncio.create_subprocess_exec(
                    *cmd,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.STDOUT,
                )
            except OSError as e:
                logger.error("mux.spawn.error bin=%s err=%s", self._bin, e)
                raise MuxFailure(detail=str(e)) from e
            try:
                out, _ = await proc.communicate()
            except asyncio.CancelledError:
                # ffmpeg must be gone before the caller removes the output
                logger.warning("mux.ffmpeg.cancelled pid=%s", proc.pid)
                if proc.returncode is None:
                    proc.kill()
                await proc.wait()
                raise

        if proc.returncode != 0:
            diag = (out or b"").decode("utf-8", errors="replace").strip()
            logger.error("mux.ffmpeg.failed rc=%s out=%s", proc.returncode, diag)
            raise MuxFailure(detail=diag)
