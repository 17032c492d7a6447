# core/entities.py
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional

MediaKind = Literal["video", "audio", "other"]


@dataclass(frozen=True)
class MediaFormat:
    """
    One encoding variant of a remote media item. Video-only and audio-only
    formats are selected separately and muxed afterwards.
    """

    format_id: str
    kind: MediaKind
    ext: str = ""
    mime_type: str = ""
    quality_label: Optional[str] = None  # e.g. "1080p60"
    height: int = 0
    fps: Optional[float] = None
    content_length: int = 0  # expected bytes for progress, may be an estimate
    filesize: int = 0  # exact bytes, 0 unless upstream reported it
    url: str = ""
    http_headers: Dict[str, str] = field(default_factory=dict, compare=False)

    @property
    def is_mp4_family(self) -> bool:
        return "mp4" in self.mime_type or self.ext in ("mp4", "m4a")


@dataclass
class MediaInfo:
    title: str
    formats: List[MediaFormat]


@dataclass
class DownloadPaths:
    """Filesystem locations used by one pipeline run."""

    video_temp: str
    audio_temp: str
    output: str

    @property
    def temps(self) -> tuple[str, str]:
        return self.video_temp, self.audio_temp
