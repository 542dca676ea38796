"""Core custom exceptions for the application.

Every generation failure derives from ``GenerationError``. Its ``str()`` is the
single message a caller shows to the user, while ``kind`` keeps the failure
category around for logs and diagnostics.
"""


class GenerationError(Exception):
    """Base exception for a failed generation session."""

    kind = "generation"

    def __init__(self, message: str = "Failed to generate code") -> None:
        super().__init__(message)
        self.message = message


class TransportError(GenerationError):
    """Network or connection failure, including transport timeouts."""

    kind = "transport"


class UpstreamError(GenerationError):
    """Non-success HTTP status carrying the provider's error message."""

    kind = "upstream"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EmptyResponseError(GenerationError):
    """Success status but no usable body."""

    kind = "empty_response"


class DecodeError(GenerationError):
    """Malformed byte sequence in the response body."""

    kind = "decode"


class SessionBusyError(GenerationError):
    """A generate call was made while another one is still in flight."""

    kind = "busy"


class SessionStateError(GenerationError):
    """Invalid transition of a generation session's state machine."""

    kind = "state"


class ConfigurationError(Exception):
    """Exception for configuration-related errors (e.g., missing templates, invalid settings)."""
