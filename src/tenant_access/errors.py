from __future__ import annotations


class AppError(Exception):
    """Base error for expected failures."""

    def __init__(self, message: str, *, http_status: int = 400):
        super().__init__(message)
        self.message = message
        self.http_status = http_status


class AuthError(AppError):
    def __init__(self, message: str = "unauthorized"):
        super().__init__(message, http_status=401)


class ForbiddenError(AppError):
    def __init__(self, message: str = "forbidden"):
        super().__init__(message, http_status=403)


class NotFoundError(AppError):
    def __init__(self, message: str = "not found"):
        super().__init__(message, http_status=404)


class CapabilityFetchError(AppError):
    """Raised by capability sources; the store turns it into a toast."""

    def __init__(self, message: str = "Failed to fetch permissions", *, status_code: int | None = None):
        super().__init__(message, http_status=502)
        self.status_code = status_code


class SessionStateError(AppError):
    def __init__(self, message: str):
        super().__init__(message, http_status=409)
