"""Exception taxonomy for recipe extraction."""


class RecipeExtractError(Exception):
    """Base exception for recipe extraction errors."""


class ConfigurationError(RecipeExtractError):
    """Raised when configuration is missing or invalid."""


class ValidationError(RecipeExtractError):
    """Raised when input validation fails."""


class AdmissionRejected(RecipeExtractError):
    """Raised when the preflight gate rejects a URL."""

    def __init__(self, message: str, *, borderline: bool = False) -> None:
        super().__init__(message)
        self.borderline = borderline


class ServiceUnavailable(RecipeExtractError):
    """Raised when the circuit breaker is open for a dependency."""

    def __init__(self, message: str, *, retry_after: float) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class UploadPermissionDenied(RecipeExtractError):
    """Raised when every upload library mode reported a permission error"""  # noqa: D415


class ProcessingTimeout(RecipeExtractError):
    """Raised when the polling budget is exhausted."""


class TransientApiError(RecipeExtractError):
    """Raised when the upstream service reports a retryable failure."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class InvalidResponseStructure(TransientApiError):
    """Raised when a response parses but lacks required recipe fields."""


class FatalApiError(RecipeExtractError):
    """Raised when the upstream service reports a non-retryable failure."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class NetworkError(RecipeExtractError):
    """Raised when connection or timeout failures occur."""


class ExtractionFailed(RecipeExtractError):
    """Final video extraction failure carrying salvage data for the caller.

    ``cause`` holds the classified error from the taxonomy above.
    """

    def __init__(
        self,
        message: str,
        *,
        cause: Exception,
        thumbnail: str | None = None,
        video_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.cause = cause
        self.thumbnail = thumbnail
        self.video_id = video_id

    @property
    def reason(self) -> str:
        return str(self)


class RenderUnavailable(RecipeExtractError):
    """Raised when no headless browser could render the page."""
