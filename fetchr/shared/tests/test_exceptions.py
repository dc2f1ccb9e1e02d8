"""Tests for the fetchr exception system."""

from __future__ import annotations

import json

from fetchr.shared.exceptions import (
    ErrorReason,
    FetchrAbortError,
    FetchrBadJsonError,
    FetchrError,
    FetchrHttpStatusError,
    FetchrTimeoutError,
    FetchrUnknownError,
)
from fetchr.shared.hints import (
    INVALID_JSON,
    NETWORK_ERROR,
    RATE_LIMIT_HIT,
    REQUEST_ABORTED,
    REQUEST_TIMEOUT,
    SERVER_ERROR,
)
from fetchr.types import RequestOptions

OPTIONS = RequestOptions(
    url="https://api.test.com/items",
    method="get",
    headers={"X-Trace": "abc"},
    timeout=1.5,
)


class TestFetchrError:
    """Test attributes shared by every error."""

    def test_request_context(self):
        error = FetchrTimeoutError("Request failed due to timeout", OPTIONS)

        assert error.options is OPTIONS
        assert error.url == "https://api.test.com/items"
        assert error.timeout == 1.5
        assert error.status_code == 0
        assert error.raw_request == {
            "headers": {"X-Trace": "abc"},
            "method": "GET",
            "url": "https://api.test.com/items",
        }

    def test_plain_text_body(self):
        error = FetchrUnknownError("connection reset", OPTIONS)
        assert error.body == "connection reset"
        assert error.output is None
        assert error.meta is None

    def test_json_body_output_and_meta(self):
        message = json.dumps({"output": {"message": "nope"}, "meta": {"id": 7}})
        error = FetchrHttpStatusError(message, OPTIONS, status_code=400)

        assert error.body == {"output": {"message": "nope"}, "meta": {"id": 7}}
        assert error.output == {"message": "nope"}
        assert error.meta == {"id": 7}

    def test_json_array_body(self):
        error = FetchrHttpStatusError("[1, 2]", OPTIONS, status_code=400)
        assert error.body == [1, 2]
        assert error.output is None

    def test_empty_message(self):
        error = FetchrHttpStatusError("", OPTIONS, status_code=500)
        assert error.body is None

    def test_str(self):
        error = FetchrHttpStatusError("boom", OPTIONS, status_code=500)
        text = str(error)
        assert "[BAD_HTTP_STATUS] boom" in text
        assert "Status: 500" in text
        assert "GET https://api.test.com/items" in text

    def test_str_without_status(self):
        assert "Status" not in str(FetchrAbortError("aborted", OPTIONS))


class TestErrorKinds:
    """Test that each subclass maps to exactly one reason."""

    def test_reasons(self):
        assert FetchrAbortError("a", OPTIONS).reason is ErrorReason.ABORT
        assert FetchrTimeoutError("t", OPTIONS).reason is ErrorReason.TIMEOUT
        assert FetchrBadJsonError("j", OPTIONS).reason is ErrorReason.BAD_JSON
        assert FetchrHttpStatusError("s", OPTIONS).reason is ErrorReason.BAD_HTTP_STATUS
        assert FetchrUnknownError("u", OPTIONS).reason is ErrorReason.UNKNOWN

    def test_all_are_fetchr_errors(self):
        for cls in (
            FetchrAbortError,
            FetchrTimeoutError,
            FetchrBadJsonError,
            FetchrHttpStatusError,
            FetchrUnknownError,
        ):
            assert issubclass(cls, FetchrError)

    def test_reason_is_a_string(self):
        assert ErrorReason.TIMEOUT == "TIMEOUT"


class TestHints:
    """Test default hints attached to errors."""

    def test_default_hints(self):
        assert FetchrAbortError("a", OPTIONS).hints == [REQUEST_ABORTED]
        assert FetchrTimeoutError("t", OPTIONS).hints == [REQUEST_TIMEOUT]
        assert FetchrBadJsonError("j", OPTIONS).hints == [INVALID_JSON]
        assert FetchrUnknownError("u", OPTIONS).hints == [NETWORK_ERROR]

    def test_hints_are_copied(self):
        error = FetchrTimeoutError("t", OPTIONS)
        error.hints.append(NETWORK_ERROR)
        assert FetchrTimeoutError.default_hints == [REQUEST_TIMEOUT]

    def test_status_hints(self):
        assert FetchrHttpStatusError("x", OPTIONS, status_code=429).hints == [RATE_LIMIT_HIT]
        assert FetchrHttpStatusError("x", OPTIONS, status_code=503).hints == [SERVER_ERROR]
        assert FetchrHttpStatusError("x", OPTIONS, status_code=404).hints == []

    def test_explicit_hints_win(self):
        error = FetchrHttpStatusError("x", OPTIONS, status_code=429, hints=[])
        assert error.hints == []


class TestFromResponse:
    """Test building status errors from responses."""

    def test_from_response(self):
        error = FetchrHttpStatusError.from_response(
            OPTIONS, 503, "Service Unavailable", {"retry-after": "1"}
        )

        assert error.status_code == 503
        assert error.response_text == "Service Unavailable"
        assert error.message == "Service Unavailable"
        assert error.response_headers == {"retry-after": "1"}

    def test_from_response_logs_truncated_text(self, caplog):
        caplog.set_level("DEBUG", logger="fetchr.shared.exceptions")
        FetchrHttpStatusError.from_response(OPTIONS, 500, "x" * 600)

        assert "Status: 500" in caplog.text
        assert "x" * 500 + "..." in caplog.text
