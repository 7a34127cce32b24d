"""Service layer — business logic orchestration."""


class ServiceError(Exception):
    """Base service exception."""


class NotFoundError(ServiceError):
    """Resource not found (-> HTTP 404)."""


class ValidationError(ServiceError):
    """Input validation error, e.g. an inverted date range (-> HTTP 422)."""


class UpstreamError(ServiceError):
    """Hosting API or LLM API failure (-> HTTP 502).

    *status* carries the upstream HTTP status when one was received.
    """

    def __init__(self, message: str, *, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)
