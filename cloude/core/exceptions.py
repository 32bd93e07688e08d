"""
@file: exceptions.py
@description:
Service-level exceptions for the Cloude API and their mapping to HTTP responses.

All service errors derive from `supabase.SupabaseException`, so a route that only
cares about "the managed backend failed" can catch the base class, while the
subclasses carry the HTTP status the route should answer with.

@dependencies:
- supabase: SupabaseException base class
- fastapi: HTTPException and status codes
"""

from typing import NoReturn

from fastapi import HTTPException, status
from supabase import SupabaseException


class CloudeServiceError(SupabaseException):
    """Base class for errors raised by the service layer."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationFailedError(CloudeServiceError):
    """Request data is syntactically valid but semantically unusable."""
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(CloudeServiceError):
    """Credentials or token were rejected by Supabase Auth."""
    status_code = status.HTTP_401_UNAUTHORIZED


class ResourceNotFoundError(CloudeServiceError):
    """The file, folder or profile does not exist or belongs to another user."""
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(CloudeServiceError):
    """A sibling with the same name already exists."""
    status_code = status.HTTP_409_CONFLICT


class QuotaExceededError(CloudeServiceError):
    """Upload would exceed the file size limit or the user's storage quota."""
    status_code = 413


def raise_for_service_error(error: SupabaseException, fallback_detail: str) -> NoReturn:
    """
    Convert a service exception into the matching HTTPException.

    Known service errors keep their own message; any other Supabase failure is
    reported as a 500 with `fallback_detail`.

    Args:
        error: The exception raised by the service layer
        fallback_detail: Message used for unexpected backend failures

    Raises:
        HTTPException: Always
    """
    if isinstance(error, CloudeServiceError) and error.status_code < 500:
        headers = None
        if error.status_code == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        raise HTTPException(status_code=error.status_code, detail=error.message, headers=headers)

    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=fallback_detail,
    )
