"""
Error taxonomy shared by the services.

Services raise these; ``app.main`` turns them into ``{success, message}``
JSON responses with the status code carried by the exception.
"""
from typing import Optional


class AppError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Missing required field"


class ConflictError(AppError):
    status_code = 409
    default_message = "Already used"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class UnauthenticatedError(AppError):
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "You are not authorized to access this resource."


class InvalidCredentialsError(AppError):
    status_code = 400
    default_message = "Password invalid, Use the correct password"


class StorageError(AppError):
    status_code = 500
    default_message = "Storage failure"


class HashingError(AppError):
    status_code = 500
    default_message = "Password hashing failed"


class InvalidTokenError(AppError):
    status_code = 401
    default_message = "Invalid token"


class ExternalServiceError(AppError):
    status_code = 502
    default_message = "Upstream service failure"
