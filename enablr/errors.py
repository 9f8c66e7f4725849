from typing import Optional


class EnablrError(Exception):
    """Base class for errors the HTTP layer knows how to answer."""

    status_code = 500
    public_message = "Internal server error"

    def client_message(self) -> str:
        if self.status_code < 500:
            return str(self) or self.public_message
        return self.public_message


class ValidationError(EnablrError):
    """Raised when required input is missing or malformed."""

    status_code = 400
    public_message = "Invalid request"

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(EnablrError):
    status_code = 404
    public_message = "Not found"


class ConflictError(EnablrError):
    status_code = 409
    public_message = "Conflict"


class ConfigurationError(EnablrError):
    """Raised when credentials for an external service are absent."""

    public_message = "Service configuration error"


class UpstreamError(EnablrError):
    """Raised when an external API call fails or returns a non-success answer."""

    public_message = "Upstream service failed"


class AnalysisParseError(EnablrError):
    public_message = "Failed to parse AI analysis"
