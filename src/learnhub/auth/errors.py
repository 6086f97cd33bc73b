from fastapi import HTTPException

from learnhub.config import INVALID_CREDENTIALS_MESSAGE, INVALID_TOKEN_MESSAGE


class AuthError(HTTPException):
    """Base for every failure of the auth subsystem.

    Subclasses fix the status code, the short ``error`` label rendered in the
    response envelope and the public message. ``reason`` is for logs only and
    never leaves the process.
    """

    status_code: int = 401
    error: str = "Unauthorized"
    message: str = "Authentication required"

    def __init__(self, message: str | None = None, reason: str | None = None):
        super().__init__(status_code=self.status_code, detail=message or self.message)
        self.reason = reason or self.detail


class InvalidCredentials(AuthError):
    message = INVALID_CREDENTIALS_MESSAGE


class EmailAlreadyRegistered(AuthError):
    status_code = 409
    error = "Conflict"
    message = "Email already registered"


class Unauthenticated(AuthError):
    message = "No token provided"


class InvalidToken(AuthError):
    message = INVALID_TOKEN_MESSAGE


class TokenExpired(AuthError):
    # Same public message as InvalidToken, only the logs tell them apart
    message = INVALID_TOKEN_MESSAGE


class InvalidOrExpiredRefreshToken(AuthError):
    message = "Refresh token expired or invalid"


class Forbidden(AuthError):
    status_code = 403
    error = "Forbidden"
    message = "Insufficient permissions"
