# service/video_info_service.py
import logging
from typing import Dict
from core.format_selector import format_height
from core.media_source import MediaSource
from model.api import VideoInfoResponse
from service.job_service import is_valid_video_id
from util.enums import ErrorMessage
from util.errors import AppError, PipelineError
from util.functions import format_quality_label

logger = logging.getLogger(__name__)


class VideoInfoService:
    """
    Title and selectable qualities of a video, highest first.
    """

    def __init__(self, source: MediaSource) -> None:
        self._source = source

    async def get_info(self, video_id: str | None) -> VideoInfoResponse:
        if not video_id:
            raise AppError.of(ErrorMessage.VIDEO_ID_REQUIRED)
        if not is_valid_video_id(video_id):
            raise AppError.of(ErrorMessage.INVALID_VIDEO_ID)

        try:
            info = await self._source.fetch_metadata(video_id)
        except PipelineError as e:
            logger.error("info.fetch.error video=%s detail=%s", video_id, e.detail)
            raise AppError.of(ErrorMessage.VIDEO_INFO_FAILED)

        by_height: Dict[int, str] = {}
        for f in info.formats:
            if f.kind != "video" or not f.quality_label:
                continue
            h = format_height(f)
            if h > 0:
                by_height[h] = format_quality_label(f.quality_label)

        qualities = [by_height[h] for h in sorted(by_height, reverse=True)]
        logger.info("info.ok video=%s qualities=%d", video_id, len(qualities))
        return VideoInfoResponse(title=info.title, qualities=qualities)
