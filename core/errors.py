"""FlowBoard error taxonomy.

Every failure that can reach an HTTP client is a BoardError subclass with
a status code and a public message. The FastAPI app renders them as
``{"error": message}``. MalformedRecord is internal to stream parsing and
never surfaces over HTTP.
"""


class BoardError(Exception):
    """Base class for errors rendered as JSON error responses."""

    status_code: int = 500
    message: str = "Internal error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class Unauthorized(BoardError):
    """Missing, malformed or rejected bearer credential."""

    status_code = 401
    message = "Unauthorized"


class RateLimited(BoardError):
    """Upstream model gateway answered 429."""

    status_code = 429
    message = "Rate limits exceeded"


class QuotaExhausted(BoardError):
    """Upstream model gateway answered 402."""

    status_code = 402
    message = "Payment required"


class UpstreamError(BoardError):
    """Any other upstream failure, including missing configuration."""

    status_code = 500
    message = "AI gateway error"


class PersistenceFailure(BoardError):
    """Task store insert/update/delete failed."""

    status_code = 500
    message = "Task store error"


class AuthServiceError(BoardError):
    """The auth service rejected a sign-up or sign-in request."""

    status_code = 400
    message = "Authentication request rejected"


class MalformedRecord(ValueError):
    """A stream record or tool argument buffer that is not valid JSON."""
