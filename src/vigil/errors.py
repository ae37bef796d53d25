"""Error taxonomy for alert-condition operations.

Every error carries an ErrorCode and the status class a transport layer
should map it to. Everything except StorageUnavailable is caller-recoverable.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    STREAM_NOT_FOUND = "STREAM_NOT_FOUND"
    CONDITION_NOT_FOUND = "CONDITION_NOT_FOUND"
    UNKNOWN_CONDITION_TYPE = "UNKNOWN_CONDITION_TYPE"
    INVALID_PARAMETERS = "INVALID_PARAMETERS"
    TYPE_MISMATCH = "TYPE_MISMATCH"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    CONFLICTING_UPDATE = "CONFLICTING_UPDATE"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"


ERROR_STATUS_MAP: dict[ErrorCode, int] = {
    ErrorCode.STREAM_NOT_FOUND: 404,
    ErrorCode.CONDITION_NOT_FOUND: 404,
    ErrorCode.UNKNOWN_CONDITION_TYPE: 400,
    ErrorCode.INVALID_PARAMETERS: 400,
    ErrorCode.TYPE_MISMATCH: 400,
    ErrorCode.PERMISSION_DENIED: 403,
    ErrorCode.CONFLICTING_UPDATE: 409,
    ErrorCode.STORAGE_UNAVAILABLE: 503,
}


class VigilError(Exception):
    """Base exception for all alert-condition errors.

    A single handler at the transport edge can catch the whole hierarchy
    and use status_code / to_dict() to build a response.
    """

    error_code: ErrorCode = ErrorCode.STORAGE_UNAVAILABLE

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []

    @property
    def status_code(self) -> int:
        return ERROR_STATUS_MAP.get(self.error_code, 500)

    @property
    def recoverable(self) -> bool:
        """True for client-error class failures."""
        return self.status_code < 500

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "error": self.error_code.value,
            "message": self.message,
            "status": self.status_code,
        }
        if self.details:
            out["details"] = self.details
        return out


class StreamNotFound(VigilError):
    error_code = ErrorCode.STREAM_NOT_FOUND

    def __init__(self, stream_id: str) -> None:
        super().__init__(f"Stream {stream_id!r} not found.")
        self.stream_id = stream_id


class ConditionNotFound(VigilError):
    error_code = ErrorCode.CONDITION_NOT_FOUND

    def __init__(self, stream_id: str, condition_id: str) -> None:
        super().__init__(
            f"Alert condition {condition_id!r} not found on stream {stream_id!r}."
        )
        self.stream_id = stream_id
        self.condition_id = condition_id


class UnknownConditionType(VigilError):
    error_code = ErrorCode.UNKNOWN_CONDITION_TYPE

    def __init__(self, type_id: str, available: list[str] | None = None) -> None:
        msg = f"Unknown alert condition type: {type_id!r}."
        if available:
            msg += f" Available: {available}"
        super().__init__(msg)
        self.type_id = type_id


class InvalidParameters(VigilError):
    """Parameters (or title) failed validation.

    details holds one {"path": ..., "issue": ...} entry per violation.
    """

    error_code = ErrorCode.INVALID_PARAMETERS

    def __init__(self, type_id: str, details: list[dict[str, Any]]) -> None:
        issues = "; ".join(f"{d['path']}: {d['issue']}" for d in details)
        super().__init__(f"Invalid parameters for {type_id!r}: {issues}", details)
        self.type_id = type_id


class TypeMismatch(VigilError):
    error_code = ErrorCode.TYPE_MISMATCH

    def __init__(self, existing_type: str, requested_type: str) -> None:
        super().__init__(
            f"Cannot change condition type from {existing_type!r} to {requested_type!r}."
        )
        self.existing_type = existing_type
        self.requested_type = requested_type


class PermissionDenied(VigilError):
    error_code = ErrorCode.PERMISSION_DENIED

    def __init__(self, action: str, resource_id: str) -> None:
        super().__init__(f"Not permitted: {action} on {resource_id!r}.")
        self.action = action
        self.resource_id = resource_id


class ConflictingUpdate(VigilError):
    error_code = ErrorCode.CONFLICTING_UPDATE

    def __init__(self, condition_id: str, message: str | None = None) -> None:
        super().__init__(
            message or f"Alert condition {condition_id!r} was modified concurrently; retry."
        )
        self.condition_id = condition_id


class StorageUnavailable(VigilError):
    """Persistence I/O failed after bounded retries."""

    error_code = ErrorCode.STORAGE_UNAVAILABLE

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        msg = f"Condition storage unavailable during {operation}"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)
        self.operation = operation
