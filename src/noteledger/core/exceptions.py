"""
Typed errors raised by the note core.

Each error carries a kind from the closed ErrorKind enumeration; the API layer
maps kinds to HTTP statuses and never looks at message text.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    VERSION_CONFLICT = "version_conflict"
    INVALID_ARGUMENT = "invalid_argument"
    STORAGE_FAILURE = "storage_failure"


class NoteLedgerError(Exception):
    """Base class for all domain errors."""

    kind: ErrorKind = ErrorKind.STORAGE_FAILURE
    default_code = "storage_failure"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}


class NotFoundError(NoteLedgerError):
    kind = ErrorKind.NOT_FOUND
    default_code = "not_found"


class VersionNotFoundError(NotFoundError):
    default_code = "version_not_found"

    def __init__(self, note_id, version: int):
        super().__init__(
            f"Version {version} of note {note_id} not found",
            details={"note_id": str(note_id), "version": version},
        )


class UserNotFoundError(NotFoundError):
    default_code = "user_not_found"

    def __init__(self, user_id):
        super().__init__("User not found", details={"user_id": str(user_id)})


class PermissionDeniedError(NoteLedgerError):
    kind = ErrorKind.PERMISSION_DENIED
    default_code = "permission_denied"


class VersionConflictError(NoteLedgerError):
    """The note changed since the caller last read it."""

    kind = ErrorKind.VERSION_CONFLICT
    default_code = "version_conflict"

    def __init__(self, expected_version: int, current_version: Optional[int]):
        super().__init__(
            "Note has been modified by another user. Please refresh and try again.",
            details={"expected_version": expected_version, "current_version": current_version},
        )
        self.expected_version = expected_version
        self.current_version = current_version


class InvalidArgumentError(NoteLedgerError):
    kind = ErrorKind.INVALID_ARGUMENT
    default_code = "invalid_argument"


class SelfShareError(InvalidArgumentError):
    default_code = "self_share"

    def __init__(self):
        super().__init__("Cannot share a note with yourself")


class StorageFailureError(NoteLedgerError):
    kind = ErrorKind.STORAGE_FAILURE
    default_code = "storage_failure"
