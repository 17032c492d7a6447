from pydantic import BaseModel
from model.job import JobStatus


class CreateJobRequest(BaseModel):
    videoId: str
    quality: str | None = None


class CreateJobResponse(BaseModel):
    jobId: str
    status: JobStatus
    streamUrl: str
    downloadUrl: str


class VideoInfoResponse(BaseModel):
    title: str
    qualities: list[str]


class HealthResponse(BaseModel):
    ok: bool
