# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BOLD = "\033[1m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    INVALID_VIDEO_ID = ErrorInfo("Invalid Video ID", status.HTTP_400_BAD_REQUEST)
    VIDEO_ID_REQUIRED = ErrorInfo("video_id required", status.HTTP_400_BAD_REQUEST)
    JOB_NOT_FOUND = ErrorInfo("Job not found", status.HTTP_404_NOT_FOUND)
    NOT_READY = ErrorInfo("Not ready", status.HTTP_400_BAD_REQUEST)
    VIDEO_INFO_FAILED = ErrorInfo(
        "Could not fetch video info", status.HTTP_502_BAD_GATEWAY
    )


class FailureMessage(str, Enum):
    """User-safe texts recorded on failed jobs."""

    SERVER_BUSY = "Server busy"
    FORMAT_NOT_FOUND = "Requested format not found"
    EMPTY_OUTPUT = "Generated file is empty"
    STORAGE_PERMISSION = (
        "Storage permission denied. Please contact system administrator."
    )
    DISK_FULL = "Disk space exhausted. Cannot complete download."
    MEDIA_PROCESSING = "Media processing error (FFmpeg failed). Please try again."
    ACCESS_RESTRICTED = (
        "YouTube restricted access to this video (Cipher/Signature error)."
    )
    ACCESS_FORBIDDEN = "Access forbidden. YouTube might be throttling the server IP."
    UNEXPECTED = "An unexpected technical error occurred during processing."

    def __str__(self):
        return self.value
