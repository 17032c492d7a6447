# util/errors.py
from fastapi import HTTPException, status
from util.enums import ErrorMessage, FailureMessage


class AppError(HTTPException):
    # Flow: raise AppError to short-circuit with a typed status & message.
    def __init__(
        self, message: str, http_status: int = status.HTTP_400_BAD_REQUEST
    ) -> None:
        super().__init__(status_code=http_status, detail=message)

    @classmethod
    def of(cls, error: ErrorMessage) -> "AppError":
        return cls(error.value.message, error.value.http_status)


class PipelineError(Exception):
    """
    Failure inside a job's pipeline. `message` is always safe to show to clients;
    raw detail (paths, tool output) travels in `detail` and is only logged.
    """

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class Busy(PipelineError):
    def __init__(self) -> None:
        super().__init__(FailureMessage.SERVER_BUSY.value)


class UpstreamFetchError(PipelineError):
    pass


class FormatUnavailable(PipelineError):
    def __init__(self, detail: str | None = None) -> None:
        super().__init__(FailureMessage.FORMAT_NOT_FOUND.value, detail)


class MuxFailure(PipelineError):
    def __init__(self, detail: str | None = None) -> None:
        super().__init__(FailureMessage.MEDIA_PROCESSING.value, detail)


class EmptyOutput(PipelineError):
    def __init__(self, detail: str | None = None) -> None:
        super().__init__(FailureMessage.EMPTY_OUTPUT.value, detail)


def sanitize_error(err: BaseException) -> str:
    """
    Map any exception to one of the fixed user-facing failure texts.
    Never returns the raw exception text.
    """
    if isinstance(err, PipelineError):
        return err.message

    msg = str(err).lower()
    if isinstance(err, PermissionError) or "permission denied" in msg:
        return FailureMessage.STORAGE_PERMISSION.value
    if "no space left" in msg:
        return FailureMessage.DISK_FULL.value
    if "ffmpeg" in msg:
        return FailureMessage.MEDIA_PROCESSING.value
    if "cipher" in msg or "signature" in msg:
        return FailureMessage.ACCESS_RESTRICTED.value
    if "403" in msg or "forbidden" in msg:
        return FailureMessage.ACCESS_FORBIDDEN.value
    return FailureMessage.UNEXPECTED.value
