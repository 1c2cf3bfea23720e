"""
Domain errors raised by the service layer.
Each error carries the HTTP status it maps to; the application renders
them as {"detail": message}, the same body HTTPException produces.
"""
from fastapi import status


class SkilloraError(Exception):
    """Base class for expected, client-visible failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(SkilloraError):
    """Malformed id or missing required field."""
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthenticatedError(SkilloraError):
    """Missing, invalid or expired credentials."""
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(SkilloraError):
    """Role or ownership mismatch."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(SkilloraError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(SkilloraError):
    """Duplicate email or duplicate enrollment."""
    status_code = status.HTTP_409_CONFLICT
