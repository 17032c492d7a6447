import os
import sys
from dotenv import load_dotenv
from pydantic import ValidationError, Field, field_validator
from pydantic_settings import BaseSettings
from util.enums import Environment
import logging


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()

_log = logging.getLogger("config.settings")

DEFAULT_MAX_CONCURRENT_JOBS = 3


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(default=Environment.DEV.value, validation_alias="APP_ENV")
    HOST: str = Field(default="127.0.0.1", validation_alias="HOST")
    PORT: int = Field(default=8080, validation_alias="PORT")

    # CORS
    ALLOWED_ORIGINS: str = Field(default="*", validation_alias="ALLOWED_ORIGINS")

    # Jobs & admission
    MAX_CONCURRENT_JOBS: int = Field(
        default=DEFAULT_MAX_CONCURRENT_JOBS, validation_alias="MAX_CONCURRENT_JOBS"
    )
    ADMISSION_TIMEOUT_SECONDS: float = Field(
        default=10.0, validation_alias="ADMISSION_TIMEOUT_SECONDS"
    )
    DEFAULT_QUALITY: str = "1080p"
    STATUS_POLL_INTERVAL_MS: int = Field(
        default=500, validation_alias="STATUS_POLL_INTERVAL_MS"
    )

    # Retention
    CLEAN_UP_AFTER_MINUTES: int = Field(
        default=15, validation_alias="CLEAN_UP_AFTER_MINUTES"
    )
    JANITOR_INTERVAL_SECONDS: int = Field(
        default=300, validation_alias="JANITOR_INTERVAL_SECONDS"
    )

    # Filesystem
    DOWNLOAD_DIR: str = Field(default="downloads", validation_alias="DOWNLOAD_DIR")
    TEMP_DIR: str = Field(default="temp", validation_alias="TEMP_DIR")
    WEB_DIR: str = Field(default="web", validation_alias="WEB_DIR")

    # External tools
    FFMPEG_BIN: str = Field(default="ffmpeg", validation_alias="FFMPEG_BIN")
    STREAM_CHUNK_SIZE: int = Field(default=32 * 1024, validation_alias="STREAM_CHUNK_SIZE")
    STREAM_TIMEOUT_SECONDS: float = Field(
        default=60.0, validation_alias="STREAM_TIMEOUT_SECONDS"
    )
    YOUTUBE_WATCH_URL: str = "https://www.youtube.com/watch?v="

    # Logging knobs
    LOGGER_NAME: str = "ytdl-server"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    @field_validator("MAX_CONCURRENT_JOBS")
    @classmethod
    def _at_least_one_slot(cls, v: int) -> int:
        if v < 1:
            _log.warning(
                "MAX_CONCURRENT_JOBS must be at least 1. Resetting to %d.",
                DEFAULT_MAX_CONCURRENT_JOBS,
            )
            return DEFAULT_MAX_CONCURRENT_JOBS
        return v

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def retention_seconds(self) -> int:
        return self.CLEAN_UP_AFTER_MINUTES * 60


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
