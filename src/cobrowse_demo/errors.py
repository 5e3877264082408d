"""Structured error codes and exception classes for the cobrowse token server."""

from __future__ import annotations

__all__ = [
    "ErrorCode",
    "CobrowseError",
    "InvalidArgument",
    "MalformedToken",
    "ConfigurationMissing",
    "ErrorResponse",
    "ERROR_STATUS_MAP",
]

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    MALFORMED_TOKEN = "MALFORMED_TOKEN"
    CONFIGURATION_MISSING = "CONFIGURATION_MISSING"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    TOKEN_FETCH_FAILED = "TOKEN_FETCH_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Map ErrorCode → default HTTP status code
ERROR_STATUS_MAP: dict[ErrorCode, int] = {
    ErrorCode.INVALID_ARGUMENT: 400,
    ErrorCode.MALFORMED_TOKEN: 400,
    ErrorCode.CONFIGURATION_MISSING: 503,
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.TOKEN_FETCH_FAILED: 502,
    ErrorCode.INTERNAL_ERROR: 500,
}


class CobrowseError(Exception):
    """Structured application error that maps to a JSON error response."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details: dict = details or {}
        self.status_code: int = status_code if status_code is not None else ERROR_STATUS_MAP.get(code, 500)


class InvalidArgument(CobrowseError):
    """Missing or empty input passed to an encoder or generator."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(ErrorCode.INVALID_ARGUMENT, message, details)


class MalformedToken(CobrowseError):
    """Token has the wrong segment count or a segment that does not decode."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(ErrorCode.MALFORMED_TOKEN, message, details)


class ConfigurationMissing(CobrowseError):
    """SDK credentials are unset or still the shipped placeholders."""

    def __init__(
        self,
        message: str = "SDK_KEY and SDK_SECRET environment variables must be set",
    ) -> None:
        super().__init__(ErrorCode.CONFIGURATION_MISSING, message)


class ErrorResponse(BaseModel):
    """Serialisable envelope for all error responses."""

    error: dict  # {code: str, message: str, details: dict}

    @classmethod
    def from_cobrowse_error(cls, exc: CobrowseError) -> "ErrorResponse":
        return cls(error={"code": exc.code.value, "message": exc.message, "details": exc.details})

    @classmethod
    def internal(cls, message: str = "An unexpected error occurred") -> "ErrorResponse":
        return cls(error={
            "code": ErrorCode.INTERNAL_ERROR.value,
            "message": message,
            "details": {},
        })
