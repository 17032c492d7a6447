# core/media_source.py
import asyncio
import logging
from typing import Any, AsyncIterator, Dict, List, Protocol

import httpx
from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadError, ExtractorError

from config.settings import settings
from core.entities import MediaFormat, MediaInfo, MediaKind
from util.errors import UpstreamFetchError, sanitize_error
from util.logger import YtDlpLogger
from util.timing import timed

logger = logging.getLogger(__name__)

CODEC_NONE = "none"
DIRECT_PROTOCOLS = ("http", "https")
# YouTube throttles unbounded GETs; fetch in ranged slices like yt-dlp does
RANGE_CHUNK_BYTES = 10 * 1024 * 1024


class MediaSource(Protocol):
    async def fetch_metadata(self, video_id: str) -> MediaInfo: ...

    def open_stream(self, fmt: MediaFormat) -> AsyncIterator[bytes]: ...


def _kind_of(raw: Dict[str, Any]) -> MediaKind:
    vcodec = raw.get("vcodec") or CODEC_NONE
    acodec = raw.get("acodec") or CODEC_NONE
    if vcodec != CODEC_NONE and acodec == CODEC_NONE:
        return "video"
    if acodec != CODEC_NONE and vcodec == CODEC_NONE:
        return "audio"
    return "other"


def _quality_label(height: int, fps: float | None) -> str | None:
    if not height:
        return None
    # YouTube labels only high frame rates ("1080p60")
    if fps and fps > 30:
        return f"{height}p{int(round(fps))}"
    return f"{height}p"


def to_media_format(raw: Dict[str, Any]) -> MediaFormat:
    """
    Convert one yt-dlp format dict into a MediaFormat.
    """
    kind = _kind_of(raw)
    ext = str(raw.get("ext") or "")
    height = int(raw.get("height") or 0) if kind == "video" else 0
    fps = raw.get("fps") if kind == "video" else None
    size = raw.get("filesize") or raw.get("filesize_approx") or 0
    return MediaFormat(
        format_id=str(raw.get("format_id") or ""),
        kind=kind,
        ext=ext,
        mime_type=f"{kind}/{ext}" if kind != "other" and ext else "",
        quality_label=_quality_label(height, fps) if kind == "video" else None,
        height=height,
        fps=fps,
        content_length=int(size),
        filesize=int(raw.get("filesize") or 0),
        url=str(raw.get("url") or ""),
        http_headers=dict(raw.get("http_headers") or {}),
    )


def to_media_info(info: Dict[str, Any]) -> MediaInfo:
    formats: List[MediaFormat] = []
    for raw in info.get("formats") or []:
        if raw.get("protocol") not in DIRECT_PROTOCOLS:
            continue
        f = to_media_format(raw)
        if f.url:
            formats.append(f)
    return MediaInfo(title=str(info.get("title") or "video"), formats=formats)


class YtDlpMediaSource:
    """
    Metadata via yt-dlp (no download), bytes via httpx against the direct
    format URL yt-dlp resolved.
    """

    def __init__(
        self,
        *,
        watch_url: str = settings.YOUTUBE_WATCH_URL,
        chunk_size: int = settings.STREAM_CHUNK_SIZE,
        timeout: float = settings.STREAM_TIMEOUT_SECONDS,
    ) -> None:
        self._watch_url = watch_url
        self._chunk_size = chunk_size
        self._timeout = timeout

    def _extract(self, video_id: str) -> Dict[str, Any]:
        opts = {
            "quiet": True,
            "no_warnings": True,
            "noplaylist": True,
            "skip_download": True,
            "logger": YtDlpLogger(),
        }
        with YoutubeDL(opts) as ydl:
            return ydl.extract_info(self._watch_url + video_id, download=False)

    async def fetch_metadata(self, video_id: str) -> MediaInfo:
        try:
            with timed(logger, "source.metadata", video=video_id):
                info = await asyncio.to_thread(self._extract, video_id)
        except (DownloadError, ExtractorError, OSError) as e:
            raise UpstreamFetchError(sanitize_error(e), detail=str(e)) from e
        if not info:
            raise UpstreamFetchError(
                sanitize_error(RuntimeError("empty metadata")), detail="empty info"
            )
        media = to_media_info(info)
        logger.info(
            "source.metadata.ok video=%s formats=%d", video_id, len(media.formats)
        )
        return media

    async def open_stream(self, fmt: MediaFormat) -> AsyncIterator[bytes]:
        """
        Yield the bytes of `fmt`. Raises UpstreamFetchError on transport or
        HTTP status failures.

        Ranged slices are only used when the exact size is known; an estimate
        would truncate or overrun the file. A server answering the first slice
        with 200 sends the whole body, which is streamed as is.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, follow_redirects=True
            ) as client:
                if fmt.filesize > 0:
                    start = 0
                    while start < fmt.filesize:
                        end = min(start + RANGE_CHUNK_BYTES, fmt.filesize) - 1
                        headers = {**fmt.http_headers, "Range": f"bytes={start}-{end}"}
                        async with client.stream("GET", fmt.url, headers=headers) as r:
                            r.raise_for_status()
                            if r.status_code != httpx.codes.PARTIAL_CONTENT:
                                if start > 0:
                                    raise UpstreamFetchError(
                                        sanitize_error(RuntimeError("range ignored")),
                                        detail=f"http {r.status_code} for bytes={start}-{end}",
                                    )
                                logger.info(
                                    "source.range.ignored format=%s status=%s",
                                    fmt.format_id,
                                    r.status_code,
                                )
                                async for chunk in r.aiter_bytes(self._chunk_size):
                                    yield chunk
                                return
                            async for chunk in r.aiter_bytes(self._chunk_size):
                                yield chunk
                        start = end + 1
                else:
                    async with client.stream(
                        "GET", fmt.url, headers=fmt.http_headers
                    ) as r:
                        r.raise_for_status()
                        async for chunk in r.aiter_bytes(self._chunk_size):
                            yield chunk
        except httpx.HTTPStatusError as e:
            # classify on the status alone; the signed URL in str(e) can mislead
            code = e.response.status_code
            raise UpstreamFetchError(
                sanitize_error(RuntimeError(f"http {code}")), detail=str(e)
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamFetchError(sanitize_error(e), detail=str(e)) from e
