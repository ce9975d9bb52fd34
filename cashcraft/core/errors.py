from typing import Any


class AppError(Exception):
    """Base for errors that are reported to the caller as a JSON envelope."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def extra(self) -> dict[str, Any]:
        return {}


class RequestValidationFailed(AppError):
    status_code = 400
    message = "Validation error"

    def __init__(self, errors: list[dict[str, Any]]):
        super().__init__()
        self.errors = errors

    def extra(self) -> dict[str, Any]:
        return {"errors": self.errors}


class AuthError(AppError):
    status_code = 401
    message = "Authentication failed"


class NoTokenError(AuthError):
    message = "No token provided"


class InvalidTokenError(AuthError):
    message = "Invalid token"


class InvalidCredentialsError(AuthError):
    # bad email and bad password are reported identically
    status_code = 400
    message = "Invalid credentials"


class ConflictError(AppError):
    status_code = 400
    message = "Resource already exists"


class DuplicateAccountError(ConflictError):
    message = "User with this email or phone already exists"


class StateError(AppError):
    status_code = 403
    message = "Operation not allowed in the current state"


class AccountInactiveError(StateError):
    message = "Account is suspended or closed"


class NotFoundError(AppError):
    status_code = 404
    message = "Not found"


class ServerError(AppError):
    """Unexpected failure. ``stack`` is only shown to callers in development."""

    status_code = 500
    message = "Server error"

    def __init__(self, message: str | None = None, stack: str | None = None):
        super().__init__(message)
        self.stack = stack
