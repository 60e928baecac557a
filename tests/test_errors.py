"""Tests for error classification and tool error dicts."""

from __future__ import annotations

import json

import httpx
import pytest
from google.genai import errors as genai_errors
from pydantic import ValidationError

from marketing_studio_mcp.errors import (
    BatchGenerationError,
    ErrorCategory,
    GenerationCancelled,
    GenerationError,
    MalformedResponseError,
    classify_error,
    describe,
    make_tool_error,
    requires_reselection,
)
from marketing_studio_mcp.models.artifacts import SalesScript


def _api_error(code: int, status: str | None = None, message: str = "", reason: str | None = None):
    body: dict = {"code": code, "message": message}
    if status:
        body["status"] = status
    if reason:
        body["details"] = [{"@type": "type.googleapis.com/google.rpc.ErrorInfo", "reason": reason}]
    cls = genai_errors.ServerError if code >= 500 else genai_errors.ClientError
    return cls(code, {"error": body})


def _http_status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://generativelanguage.googleapis.com/v1beta/files/abc")
    return httpx.HTTPStatusError("boom", request=request, response=httpx.Response(code, request=request))


class TestClassifyStructuredSignals:
    @pytest.mark.parametrize("code,status,expected", [
        (429, "RESOURCE_EXHAUSTED", ErrorCategory.QUOTA_EXCEEDED),
        (429, None, ErrorCategory.QUOTA_EXCEEDED),
        (403, "PERMISSION_DENIED", ErrorCategory.PERMISSION_DENIED),
        (403, None, ErrorCategory.PERMISSION_DENIED),
        (404, "NOT_FOUND", ErrorCategory.NOT_FOUND),
        (401, "UNAUTHENTICATED", ErrorCategory.NOT_FOUND),
        (500, "INTERNAL", ErrorCategory.TRANSIENT),
        (503, "UNAVAILABLE", ErrorCategory.TRANSIENT),
        (504, "DEADLINE_EXCEEDED", ErrorCategory.TRANSIENT),
        (400, "INVALID_ARGUMENT", ErrorCategory.UNKNOWN),
    ])
    def test_genai_api_errors(self, code, status, expected):
        assert classify_error(_api_error(code, status, "whatever")) == expected

    def test_code_wins_over_misleading_message(self):
        """Message wording must not change the verdict when a code is present."""
        err = _api_error(429, "RESOURCE_EXHAUSTED", message="Permission to proceed later")
        assert classify_error(err) == ErrorCategory.QUOTA_EXCEEDED

    def test_reworded_quota_message_still_quota(self):
        err = _api_error(429, message="Slow down, friend")
        assert classify_error(err) == ErrorCategory.QUOTA_EXCEEDED

    def test_invalid_api_key_reason_is_not_found(self):
        err = _api_error(400, "INVALID_ARGUMENT", "API key not valid.", reason="API_KEY_INVALID")
        assert classify_error(err) == ErrorCategory.NOT_FOUND

    @pytest.mark.parametrize("code,expected", [
        (429, ErrorCategory.QUOTA_EXCEEDED),
        (403, ErrorCategory.PERMISSION_DENIED),
        (404, ErrorCategory.NOT_FOUND),
        (502, ErrorCategory.TRANSIENT),
    ])
    def test_httpx_status_errors(self, code, expected):
        assert classify_error(_http_status_error(code)) == expected

    def test_generation_error_category_is_used_as_is(self):
        err = GenerationError(ErrorCategory.PERMISSION_DENIED, detail="429 quota")
        assert classify_error(err) == ErrorCategory.PERMISSION_DENIED


class TestClassifyExceptionTypes:
    @pytest.mark.parametrize("exc", [
        TimeoutError(),
        ConnectionResetError("reset by peer"),
        httpx.ConnectError("connection refused"),
        httpx.ReadTimeout("read timed out"),
    ])
    def test_network_faults_are_transient(self, exc):
        assert classify_error(exc) == ErrorCategory.TRANSIENT

    def test_json_decode_error_is_malformed(self):
        with pytest.raises(json.JSONDecodeError) as exc_info:
            json.loads("{not json")
        assert classify_error(exc_info.value) == ErrorCategory.MALFORMED_RESPONSE

    def test_validation_error_is_malformed(self):
        with pytest.raises(ValidationError) as exc_info:
            SalesScript.model_validate({"headline": "x"})
        assert classify_error(exc_info.value) == ErrorCategory.MALFORMED_RESPONSE

    def test_malformed_response_error(self):
        assert classify_error(MalformedResponseError("bad")) == ErrorCategory.MALFORMED_RESPONSE

    def test_cancelled(self):
        assert classify_error(GenerationCancelled()) == ErrorCategory.CANCELLED


class TestClassifyMessageFallback:
    @pytest.mark.parametrize("msg,expected", [
        ("Requested entity was not found.", ErrorCategory.NOT_FOUND),
        ("RESOURCE_EXHAUSTED: try later", ErrorCategory.QUOTA_EXCEEDED),
        ("billing account required", ErrorCategory.PERMISSION_DENIED),
        ("service unavailable", ErrorCategory.TRANSIENT),
        ("something odd happened", ErrorCategory.UNKNOWN),
    ])
    def test_plain_exceptions(self, msg, expected):
        assert classify_error(Exception(msg)) == expected


class TestReselection:
    @pytest.mark.parametrize("category,expected", [
        (ErrorCategory.PERMISSION_DENIED, True),
        (ErrorCategory.NOT_FOUND, True),
        (ErrorCategory.QUOTA_EXCEEDED, False),
        (ErrorCategory.TRANSIENT, False),
        (ErrorCategory.MALFORMED_RESPONSE, False),
        (ErrorCategory.UNKNOWN, False),
    ])
    def test_requires_reselection(self, category, expected):
        assert requires_reselection(category) is expected


class TestMakeToolError:
    def test_generation_error_uses_short_message(self):
        err = GenerationError(ErrorCategory.QUOTA_EXCEEDED, detail="429 RESOURCE_EXHAUSTED {...}")
        result = make_tool_error(err)
        assert result["error"] == describe(ErrorCategory.QUOTA_EXCEEDED)
        assert "RESOURCE_EXHAUSTED" not in result["error"]
        assert result["category"] == "QUOTA_EXCEEDED"
        assert result["retryable"] is True
        assert result["retry_after_seconds"] == 60

    def test_permission_error_not_retryable(self):
        result = make_tool_error(GenerationError(ErrorCategory.PERMISSION_DENIED))
        assert result["retryable"] is False
        assert result["retry_after_seconds"] is None

    def test_value_error_is_invalid_input(self):
        result = make_tool_error(ValueError("key_benefits: at least one key benefit is required"))
        assert result["category"] == "INVALID_INPUT"
        assert "key_benefits" in result["error"]

    def test_raw_timeout_maps_to_transient(self):
        result = make_tool_error(TimeoutError())
        assert result["category"] == "TRANSIENT"
        assert result["retryable"] is True


class TestBatchGenerationError:
    def test_single_shared_category(self):
        from marketing_studio_mcp.batch import VariantFailure
        from marketing_studio_mcp.variants import IMAGE_VARIANTS

        failures = [
            VariantFailure(variant=v, category=ErrorCategory.QUOTA_EXCEEDED, message="quota")
            for v in IMAGE_VARIANTS
        ]
        err = BatchGenerationError(failures, attempted=5)
        assert err.category == ErrorCategory.QUOTA_EXCEEDED
        assert "5 variants" in str(err)

    def test_mixed_categories_are_unknown(self):
        from marketing_studio_mcp.batch import VariantFailure
        from marketing_studio_mcp.variants import IMAGE_VARIANTS

        failures = [
            VariantFailure(variant=IMAGE_VARIANTS[0], category=ErrorCategory.QUOTA_EXCEEDED, message="a"),
            VariantFailure(variant=IMAGE_VARIANTS[1], category=ErrorCategory.TRANSIENT, message="b"),
        ]
        assert BatchGenerationError(failures, attempted=2).category == ErrorCategory.UNKNOWN
