"""
Error taxonomy shared by every module.

Each error is an HTTPException so services can raise them directly and the
global handler in app.main renders them as {"error": "<message>"}.
"""

import logging

import httpx
from fastapi import HTTPException, status
from postgrest.exceptions import APIError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
MISSING_TABLE_CODES = {"42P01", "PGRST205"}
INVALID_TEXT_REPRESENTATION = "22P02"


class RepofyError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Request failed"

    def __init__(self, detail: str = None, headers: dict = None):
        super().__init__(
            status_code=type(self).status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class Unauthenticated(RepofyError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "No token provided"


class Forbidden(RepofyError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class Unauthorized(Forbidden):
    default_detail = "Unauthorized"


class NotFound(RepofyError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class InvalidInput(RepofyError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class InvalidUsername(InvalidInput):
    default_detail = (
        "Username must be at least 3 characters and contain only letters, "
        "numbers, underscores and hyphens"
    )


class Conflict(RepofyError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Resource already exists"


class UsernameTaken(Conflict):
    default_detail = "Username is already taken"


class StoreFailure(RepofyError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Data store error"


class ServiceUnavailable(RepofyError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Upstream service did not respond in time"


def is_unique_violation(exc: Exception) -> bool:
    return isinstance(exc, APIError) and exc.code == UNIQUE_VIOLATION


def is_malformed_key(exc: Exception) -> bool:
    """True when a filter value cannot be cast to the column type, e.g. a non-uuid id."""
    return isinstance(exc, APIError) and exc.code == INVALID_TEXT_REPRESENTATION


def is_missing_table(exc: Exception) -> bool:
    """True when the store reports the table has not been migrated yet."""
    if not isinstance(exc, APIError):
        return False
    if exc.code in MISSING_TABLE_CODES:
        return True
    return "does not exist" in (exc.message or "")


def translate_store_error(exc: Exception) -> HTTPException:
    """Map an exception raised by the store or identity provider onto the taxonomy."""
    if isinstance(exc, HTTPException):
        return exc
    if isinstance(exc, httpx.TimeoutException):
        logger.warning(f"Upstream timeout: {exc}")
        return ServiceUnavailable()
    if isinstance(exc, APIError):
        if exc.code == UNIQUE_VIOLATION:
            return Conflict(exc.message or Conflict.default_detail)
        return StoreFailure(exc.message or str(exc))
    return StoreFailure(str(exc) or StoreFailure.default_detail)
