"""Exception types shared by the assistant components."""


class AssistantError(RuntimeError):
    """Base class for recoverable assistant failures."""


class ConfigurationError(AssistantError):
    """Raised when a turn cannot start because configuration is missing."""


class CompletionTransportError(AssistantError):
    """Raised when the completion request fails or returns a non-success status."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CaptureUnsupportedError(AssistantError):
    """Raised when speech capture is not available on this platform."""
