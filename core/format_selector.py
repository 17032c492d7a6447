# core/format_selector.py
from typing import Iterable, Optional, Sequence, Tuple
from core.entities import MediaFormat
from util.constants import FOUR_K_ALIAS, FOUR_K_HEIGHT
from util.errors import FormatUnavailable
from util.functions import leading_digits


def parse_quality(quality: str | None) -> int:
    """
    "4k" -> 2160, otherwise the leading digits ("720p" -> 720, "1080p60" -> 1080).
    Returns 0 when there are no leading digits.
    """
    q = (quality or "").strip()
    if q.lower() == FOUR_K_ALIAS:
        return FOUR_K_HEIGHT
    return leading_digits(q)


def format_height(f: MediaFormat) -> int:
    if f.height:
        return f.height
    return leading_digits(f.quality_label or "")


def select_video_format(
    formats: Iterable[MediaFormat], target_height: int
) -> Optional[MediaFormat]:
    """
    Exact height wins immediately; else the highest height <= target;
    else the highest available. Ties keep the first seen.
    """
    best_under: Optional[MediaFormat] = None
    best_any: Optional[MediaFormat] = None
    for f in formats:
        if f.kind != "video":
            continue
        h = format_height(f)
        if h == target_height:
            return f
        if h <= target_height and (
            best_under is None or h > format_height(best_under)
        ):
            best_under = f
        if best_any is None or h > format_height(best_any):
            best_any = f
    return best_under if best_under is not None else best_any


def select_audio_format(formats: Iterable[MediaFormat]) -> Optional[MediaFormat]:
    best: Optional[MediaFormat] = None
    for f in formats:
        if f.kind != "audio":
            continue
        if best is None or (f.is_mp4_family and not best.is_mp4_family):
            best = f
    return best


def select_formats(
    formats: Sequence[MediaFormat], quality: str | None
) -> Tuple[MediaFormat, MediaFormat]:
    target = parse_quality(quality)
    video = select_video_format(formats, target)
    audio = select_audio_format(formats)
    if video is None or audio is None:
        raise FormatUnavailable(
            f"video={'ok' if video else 'missing'} audio={'ok' if audio else 'missing'} "
            f"target={target} candidates={len(formats)}"
        )
    return video, audio
