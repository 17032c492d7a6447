from typing import Final


class InternalURIs:
    API = "/api"
    JOB = API + "/job"
    JOB_DETAIL = JOB + "/{job_id}"
    INFO = API + "/info"
    EVENTS = API + "/events"
    EVENTS_DETAIL = EVENTS + "/{job_id}"
    DOWNLOAD = API + "/download"
    DOWNLOAD_DETAIL = DOWNLOAD + "/{job_id}"


VIDEO_ID_PATTERN: Final[str] = r"^[a-zA-Z0-9_-]{11}$"
FOUR_K_ALIAS: Final[str] = "4k"
FOUR_K_HEIGHT: Final[int] = 2160
MAX_PRE_MUX_PERCENT: Final[float] = 99.9
UNSAFE_FILENAME_CHARS: Final[str] = '\\/:*?"<>|'
OUTPUT_MEDIA_TYPE: Final[str] = "video/mp4"
