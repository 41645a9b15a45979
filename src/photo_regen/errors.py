"""Error taxonomy for the regeneration pipeline."""


class PipelineError(Exception):
    """Base class for failures raised by pipeline adapters."""


class UpstreamError(PipelineError):
    """Record store request failed or returned an unusable body."""

    def __init__(
        self, message: str, status_code: int | None = None, body: str | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class FetchError(PipelineError):
    """A source image could not be downloaded."""

    def __init__(self, message: str, url: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class GenerationError(PipelineError):
    """The image model failed or returned no image."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        finish_reason: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.finish_reason = finish_reason


class StorageError(PipelineError):
    """A blob could not be written to storage."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path
