"""Unit tests for vendor error classification."""

import httpx
import pytest
from google.genai import errors as genai_errors

from backend.core.errors import (
    AuthError,
    BadRequestError,
    ContentBlockedError,
    GatewayError,
    GatewayTimeoutError,
    GenerationError,
    InternalError,
    RateLimitError,
    UpstreamError,
    classify,
    vendor_message,
)


def _status_error(status: int, **body) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://api.plant.id/v3/identification")
    response = httpx.Response(status, request=request, **body)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestHttpStatus:

    def test_401_is_auth(self):
        err = classify(_status_error(401, json={"error": {"message": "bad key"}}), vendor="Plant.id")
        assert isinstance(err, AuthError)
        assert err.status_code == 401
        assert err.message == "Invalid Plant.id API key"

    def test_429_is_rate_limit_regardless_of_message(self):
        err = classify(_status_error(429, json={"error": {"message": "API key SAFETY"}}))
        assert isinstance(err, RateLimitError)
        assert err.status_code == 429

    def test_400_attaches_vendor_message(self):
        err = classify(_status_error(400, json={"error": {"message": "images must be base64"}}))
        assert isinstance(err, BadRequestError)
        assert err.status_code == 400
        assert err.message == "Invalid request: images must be base64"

    def test_other_status_passed_through(self):
        err = classify(_status_error(503, json={"error": {"message": "maintenance"}}))
        assert isinstance(err, UpstreamError)
        assert err.status_code == 503
        assert err.message == "maintenance"

    def test_default_vendor_message(self):
        err = classify(_status_error(502, content=b""), vendor="Plant.id")
        assert err.message == "Plant.id API error"

    def test_genai_api_error_uses_code(self):
        exc = genai_errors.ClientError(429, {"error": {
            "code": 429, "message": "Resource has been exhausted", "status": "RESOURCE_EXHAUSTED",
        }})
        err = classify(exc, vendor="Gemini")
        assert isinstance(err, RateLimitError)
        assert err.message == "Gemini API rate limit exceeded"


class TestNoResponse:

    @pytest.mark.parametrize("exc", [
        httpx.ReadTimeout("timed out"),
        httpx.ConnectTimeout("timed out"),
        httpx.ConnectError("connection refused"),
    ])
    def test_timeout_and_connection(self, exc):
        err = classify(exc, vendor="Plant.id")
        assert isinstance(err, GatewayTimeoutError)
        assert err.status_code == 504
        assert err.message == "Plant.id API request timeout"

    def test_api_key_message(self):
        err = classify(Exception("API key not valid. Please pass a valid API key."), vendor="Gemini")
        assert isinstance(err, AuthError)
        assert err.status_code == 401

    def test_quota_message(self):
        err = classify(Exception("You exceeded your current quota"))
        assert isinstance(err, RateLimitError)
        assert err.status_code == 429

    def test_safety_message(self):
        err = classify(Exception("Candidate was blocked due to SAFETY"))
        assert isinstance(err, ContentBlockedError)
        assert err.status_code == 400

    def test_unrecognised_is_internal(self):
        err = classify(RuntimeError("socket exploded at /srv/app.py"))
        assert isinstance(err, InternalError)
        assert err.status_code == 500
        assert "socket" not in err.message
        assert err.detail == "socket exploded at /srv/app.py"

    def test_api_key_checked_before_quota(self):
        assert isinstance(classify(Exception("API key quota")), AuthError)


class TestPassthrough:

    def test_gateway_errors_unchanged(self):
        original = GenerationError("No response generated from Gemini")
        assert classify(original) is original

    def test_kind_is_class_name(self):
        assert RateLimitError().kind == "RateLimitError"
        assert isinstance(RateLimitError(), GatewayError)


class TestVendorMessage:

    def test_nested_error_message(self):
        assert vendor_message(_status_error(400, json={"error": {"message": "nested"}}), "X") == "nested"

    def test_top_level_message(self):
        assert vendor_message(_status_error(400, json={"message": "flat"}), "X") == "flat"

    def test_plain_string_body(self):
        assert vendor_message(_status_error(400, json="Invalid image data"), "X") == "Invalid image data"

    def test_text_body(self):
        assert vendor_message(_status_error(500, text="Bad Gateway"), "X") == "Bad Gateway"
