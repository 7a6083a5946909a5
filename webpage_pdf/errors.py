"""
Error types for webpage PDF generation.

Every failure the service reports to a caller is a PDFServiceError
carrying the HTTP status code and the message the client sees.
"""


class PDFServiceError(Exception):
    """Base class for errors surfaced by the PDF service."""

    status_code: int = 500
    message_prefix: str = "Failed to generate PDF: "

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def public_message(self) -> str:
        """Message returned to the HTTP client."""
        return f"{self.message_prefix}{self.message}"


class InvalidRequestError(PDFServiceError):
    """Request body has a bad or unexpected field."""

    status_code = 400
    message_prefix = ""


class ConfigurationError(PDFServiceError):
    """Server is missing required configuration (e.g. the access token)."""

    message_prefix = ""


class BrowserConnectionError(PDFServiceError):
    """The remote browser service could not be reached."""


class NavigationError(PDFServiceError):
    """The page failed to load and produced no markup."""


class RenderTimeoutError(PDFServiceError):
    """A bounded step exceeded its time budget."""


class GenerationError(PDFServiceError):
    """PDF rendering failed."""
