"""Custom exceptions for the Figma connector."""


class FigmaError(Exception):
    """Base exception for Figma connector errors."""

    pass


class ConfigurationError(FigmaError, ValueError):
    """Connector options are missing or invalid."""

    pass


class NotInitializedError(FigmaError):
    """Search was called before the connector was initialized."""

    pass


class AuthenticationError(FigmaError):
    """Login response did not carry a session cookie."""

    pass


class QuotaExhaustedError(FigmaError):
    """Login quota is used up and there is no earlier session to fall back on."""

    pass


class BackendRequestError(FigmaError):
    """A search request failed or returned an unexpected body."""

    def __init__(self, message: str, kind: str = "", status_code: int | None = None):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


class ThumbnailResolutionError(FigmaError):
    """Thumbnail request did not answer with a usable redirect."""

    def __init__(self, message: str, url: str = "", status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
