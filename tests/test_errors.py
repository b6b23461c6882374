"""Tests for the engine's error hierarchy."""

from __future__ import annotations

from latte.errors import (
    CompileError,
    ErrorCode,
    LatteError,
    NotFoundError,
    QuotaExceededError,
    StoreError,
)


def test_compile_error_carries_message_and_line() -> None:
    error = CompileError(message="Missing '}' in math (line 3)", line=2)

    assert isinstance(error, LatteError)
    assert str(error) == "Missing '}' in math (line 3)"
    assert error.error_code == ErrorCode.COMPILE_FAILED
    assert error.to_dict() == {
        "error": ErrorCode.COMPILE_FAILED,
        "message": "Missing '}' in math (line 3)",
        "line": 2,
    }


def test_store_error_is_a_warning_with_operation_and_key() -> None:
    error = StoreError(message="rejected", operation="save_all", key="latte_files_v1")

    assert StoreError.severity == "warning"
    payload = error.to_dict()
    assert payload["operation"] == "save_all"
    assert payload["key"] == "latte_files_v1"
    assert "details" not in payload


def test_quota_error_reports_sizes() -> None:
    error = QuotaExceededError(message="full", quota_bytes=10, requested_bytes=12)

    assert error.error_code == ErrorCode.QUOTA_EXCEEDED
    assert (error.quota_bytes, error.requested_bytes) == (10, 12)


def test_not_found_for_id_names_the_operation() -> None:
    error = NotFoundError.for_id("ghost", "open_document")

    assert error.document_id == "ghost"
    assert "open_document" in error.message
    assert "'ghost'" in error.message
    assert NotFoundError.severity == "info"


def test_errors_can_be_raised_and_caught_as_exceptions() -> None:
    try:
        raise CompileError(message="bad")
    except LatteError as exc:
        assert exc.args == ("bad",)
