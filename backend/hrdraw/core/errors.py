"""Error types raised by the roster, draw and AI layers."""


class HRDrawError(Exception):
    """Base class for service errors."""


class EmptyPoolError(HRDrawError):
    """Raised when a draw is attempted with no eligible candidates."""

    def __init__(self, message: str = "No eligible candidates left to draw") -> None:
        super().__init__(message)


class DrawInProgressError(HRDrawError):
    """Raised when a draw is started while another one is still pending."""

    def __init__(self, message: str = "A draw is already in progress") -> None:
        super().__init__(message)


class ActionInProgressError(HRDrawError):
    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(f"'{action}' is already running")


class ExternalServiceError(HRDrawError):
    """Raised when the AI assistant fails (network, auth, missing key)."""


class MalformedResponseError(ExternalServiceError):
    """Raised when the AI response is not the expected list of names."""
