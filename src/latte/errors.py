"""Error types shared by the session, render and persistence layers.

None of these errors is fatal. Compile errors become a failed render result,
store errors are returned as values and logged, and missing-document errors
only ever reach the log because operations on unknown ids are no-ops.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


class ErrorCode:
    """Constants for machine-readable error codes."""

    COMPILE_FAILED = "compile_failed"
    STORE_WRITE_FAILED = "store_write_failed"
    QUOTA_EXCEEDED = "quota_exceeded"
    DOCUMENT_NOT_FOUND = "document_not_found"


@dataclass
class LatteError(Exception):
    """Base class for all engine errors.

    Attributes:
        error_code: Stable identifier from :class:`ErrorCode`.
        message: Text shown in logs and failure results.
        details: Extra context for logs, such as the underlying exception type.
    """

    error_code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    severity: ClassVar[str] = "error"

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = dict(self.details)
        return result

    def __str__(self) -> str:
        return self.message


@dataclass
class CompileError(LatteError):
    """Raised by compilers when the source cannot be turned into a document.

    ``line`` is zero-based when known.
    """

    error_code: str = field(default=ErrorCode.COMPILE_FAILED)
    message: str = field(default="Document could not be compiled")
    details: dict[str, Any] = field(default_factory=dict)

    line: int | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.line is not None:
            result["line"] = self.line
        return result


@dataclass
class StoreError(LatteError):
    """Describes a failed write against the key-value medium.

    Returned as a value by :class:`~latte.domain.document_store.DocumentStore`,
    never raised out of it.
    """

    error_code: str = field(default=ErrorCode.STORE_WRITE_FAILED)
    message: str = field(default="Persistence medium rejected the operation")
    details: dict[str, Any] = field(default_factory=dict)

    operation: str = field(default="write")
    key: str | None = field(default=None)

    severity: ClassVar[str] = "warning"

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["operation"] = self.operation
        if self.key is not None:
            result["key"] = self.key
        return result


@dataclass
class QuotaExceededError(LatteError):
    """Raised by a key-value medium when a write would exceed its quota."""

    error_code: str = field(default=ErrorCode.QUOTA_EXCEEDED)
    message: str = field(default="Storage quota exceeded")
    details: dict[str, Any] = field(default_factory=dict)

    quota_bytes: int = field(default=0)
    requested_bytes: int = field(default=0)


@dataclass
class NotFoundError(LatteError):
    """Describes an operation that referenced a missing document id."""

    error_code: str = field(default=ErrorCode.DOCUMENT_NOT_FOUND)
    message: str = field(default="Document not found")
    details: dict[str, Any] = field(default_factory=dict)

    document_id: str | None = field(default=None)

    severity: ClassVar[str] = "info"

    @classmethod
    def for_id(cls, document_id: str | None, operation: str) -> "NotFoundError":
        return cls(
            message=f"{operation}: no document with id {document_id!r}",
            document_id=document_id,
        )


__all__ = [
    "ErrorCode",
    "LatteError",
    "CompileError",
    "StoreError",
    "QuotaExceededError",
    "NotFoundError",
]
