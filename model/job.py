# model/job.py
from datetime import datetime, timezone
from typing import Literal
from pydantic import BaseModel, Field

JobStatus = Literal[
    "pending",
    "processing",
    "ready",
    "failed",
]

TERMINAL_STATUSES: frozenset[str] = frozenset({"ready", "failed"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Job(BaseModel):
    id: str
    videoId: str
    status: JobStatus = "pending"
    percentage: float = 0.0
    filename: str = ""
    error: str | None = None
    # Server-side only; never serialized to clients
    filePath: str = Field(default="", exclude=True)
    createdAt: datetime = Field(default_factory=_utcnow, exclude=True)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
