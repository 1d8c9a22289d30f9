"""
This file contains custom, application-specific exceptions.

Every error that reaches a client carries a stable `kind` next to its
human-readable `detail`. They subclass HTTPException so services can raise
them directly and FastAPI maps them to the right status code.
"""
from fastapi import HTTPException, status


class AppError(HTTPException):
    """Base class for all errors surfaced to API callers."""
    kind: str = "InternalError"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "An internal server error occurred."

    def __init__(self, detail: str | None = None, headers: dict[str, str] | None = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class InvalidCredentialsError(AppError):
    """Raised when a login name/password pair does not match. Never says which half was wrong."""
    kind = "InvalidCredentials"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Incorrect name or password."

    def __init__(self, detail: str | None = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class UnauthorizedError(AppError):
    """Raised when the bearer token is missing, malformed, tampered with or expired."""
    kind = "Unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Could not validate credentials."

    def __init__(self, detail: str | None = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(AppError):
    """Raised when a valid token's role does not permit the requested resource."""
    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to perform this action."


class NotFoundError(AppError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found."


class PaymentValidationError(AppError):
    """Raised when payment fields fail the ledger's own checks."""
    kind = "ValidationError"
    status_code = 422
    default_detail = "Invalid payment data."


class ConflictError(AppError):
    kind = "Conflict"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with existing data."


class ServiceUnavailableError(AppError):
    """Raised when storage is unreachable or too slow. Safe for the caller to retry."""
    kind = "ServiceUnavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "The service is temporarily unavailable. Please retry later."
