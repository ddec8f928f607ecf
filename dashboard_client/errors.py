"""Errors raised by the dashboard client."""


class DashboardClientError(Exception):
    """Base class for client-side failures."""


class NetworkError(DashboardClientError):
    """The request never got an HTTP answer. Not retried."""

    def __init__(self, message: str = "Network error"):
        super().__init__(message)


class ApiError(DashboardClientError):
    """The API answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class TokenFormatError(DashboardClientError):
    """A stored token could not be parsed into claims."""
