# docbook/core/errors.py

from fastapi import status


class DocbookError(Exception):
    """Base class for errors surfaced to API callers with a stable status code."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DocbookError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(DocbookError):
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(DocbookError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(DocbookError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DocbookError):
    status_code = status.HTTP_409_CONFLICT
