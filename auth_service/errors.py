"""Failure taxonomy of the auth service.

Every error carries the client-facing message and the HTTP status it maps to.
Messages are fixed strings: credential failures must read the same no matter
which check failed, and storage errors never echo driver details.
"""


class AuthServiceError(Exception):
    status_code = 500
    message = "Server error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(AuthServiceError):
    """Required input is missing or empty."""
    status_code = 422
    message = "Missing required fields"


class ConflictError(AuthServiceError):
    """Email or user_id already taken. Deliberately does not say which."""
    status_code = 400
    message = "User ID or Email already exists"


class InvalidCredentialsError(AuthServiceError):
    """Unknown email or wrong password."""
    status_code = 400
    message = "Invalid credentials"


class StorageError(AuthServiceError):
    status_code = 500
    message = "Server error"


class TokenInvalidError(AuthServiceError):
    status_code = 401
    message = "Invalid token"


class TokenExpiredError(TokenInvalidError):
    message = "Token has expired"
