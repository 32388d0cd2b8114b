"""Exception taxonomy for runask.

Every failure a request can end with is an ``AskError`` subclass. The
client raises them, the orchestrator turns them into a single failed
``AskResult``, and the CLI renders ``title`` and ``user_message()``.
"""

from __future__ import annotations


class AskError(Exception):
    """Base exception for all application-specific errors."""

    title = "Error"

    def user_message(self) -> str:
        """Text shown to the user for this failure."""
        return str(self) or "An unknown error occurred"


class ConfigurationError(AskError):
    """A required credential or pipeline identifier is missing."""

    title = "Configuration Error"


class AuthenticationError(AskError):
    """The API rejected the credentials (HTTP 403)."""

    title = "API Error"

    def __init__(self, message: str = "Authentication failed. Please check your API key.") -> None:
        super().__init__(message)
        self.status_code = 403


class RequestFormatError(AskError):
    """The API could not process the request parameters (HTTP 422)."""

    title = "API Error"

    def __init__(self, pipeline_id: str, detail: str = "") -> None:
        self.pipeline_id = pipeline_id
        self.detail = detail
        self.status_code = 422
        super().__init__(
            "The API couldn't process your request. Check your pipeline ID format."
        )

    def user_message(self) -> str:
        return (
            "422 Unprocessable Entity Error\n\n"
            f"Pipeline ID: {self.pipeline_id}\n\n"
            "Possible issues:\n"
            "1. Pipeline ID format is incorrect (should it be a number?)\n"
            "2. API endpoint URL format may be wrong\n"
            "3. Required parameters might be missing\n\n"
            f"Error details: {self.detail or '(none)'}"
        )


class TransportError(AskError):
    """Connection drop, timeout, or any other non-success status."""

    title = "API Error"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    def user_message(self) -> str:
        if self.status_code is not None:
            return f"Error {self.status_code}: {self}"
        return str(self)


class FrameParseError(AskError):
    """A single event frame could not be parsed. Recovered locally."""

    title = "Parse Error"


class EmptyResultError(AskError):
    """The stream completed without any content chunks."""

    def __init__(self, message: str = "No response received from RunLLM") -> None:
        super().__init__(message)


class UnknownAskError(AskError):
    """Wraps an unexpected exception so a request still ends in one outcome."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(str(cause) or type(cause).__name__)
        self.cause = cause


class ClipboardError(AskError):
    """No clipboard tool is available, or the tool failed."""

    title = "Clipboard Error"


class RequestCancelledError(AskError):
    """The request was torn down before it finished."""

    def __init__(self, message: str = "Request cancelled") -> None:
        super().__init__(message)
