"""Error codes for standardized error payloads.

Maps HTTP status codes and data layer exceptions to semantic error codes so a
boundary layer can report failures consistently.
"""

from enum import Enum
from typing import Any, Dict

from reallifegit.services.store_exceptions import (
    ConsistencyError,
    NotFoundError,
    ValidationError,
)


class ErrorCode(str, Enum):
    """Standardized error codes."""

    # Client errors (4xx)
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Server errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"


# HTTP status code to ErrorCode mapping
STATUS_TO_ERROR_CODE: dict[int, ErrorCode] = {
    400: ErrorCode.BAD_REQUEST,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
    500: ErrorCode.INTERNAL_ERROR,
}

ERROR_CODE_TO_STATUS: dict[ErrorCode, int] = {
    code: status for status, code in STATUS_TO_ERROR_CODE.items()
}


def get_error_code(status_code: int) -> ErrorCode:
    """Get ErrorCode from HTTP status code."""
    return STATUS_TO_ERROR_CODE.get(status_code, ErrorCode.INTERNAL_ERROR)


def error_code_for(exc: Exception) -> ErrorCode:
    """Get ErrorCode for an exception raised by the data layer."""
    if isinstance(exc, ValidationError):
        return ErrorCode.VALIDATION_ERROR
    if isinstance(exc, NotFoundError):
        return ErrorCode.NOT_FOUND
    if isinstance(exc, ConsistencyError):
        return ErrorCode.CONFLICT
    return ErrorCode.INTERNAL_ERROR


def error_payload(exc: Exception) -> Dict[str, Any]:
    """Build the error body a boundary layer returns for ``exc``."""
    code = error_code_for(exc)
    payload: Dict[str, Any] = {
        "code": code.value,
        "status": ERROR_CODE_TO_STATUS[code],
        "message": str(exc),
    }
    if isinstance(exc, ValidationError):
        payload["errors"] = list(exc.errors)
    return payload
