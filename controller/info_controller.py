# controller/info_controller.py
from fastapi import APIRouter, Depends, Query
from model.api import VideoInfoResponse
from service.video_info_service import VideoInfoService
from util.constants import InternalURIs
from controller.controller_dependencies import get_video_info_service

info_router = APIRouter()


@info_router.get(InternalURIs.INFO, response_model=VideoInfoResponse)
async def get_video_info(
    video_id: str | None = Query(default=None),
    svc: VideoInfoService = Depends(get_video_info_service),
) -> VideoInfoResponse:
    return await svc.get_info(video_id)
