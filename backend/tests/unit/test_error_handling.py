"""
Unit tests for Error Handling

Tests for the exception hierarchy in:
- backend/trackarr/services/exceptions.py

Covering:
- HTTP status classification for failed sources
- Exception inheritance
- String representation
- JSON-RPC error rendering
"""

import pytest

from trackarr.services.exceptions import (
    AllSourcesFailedError,
    AuthenticationError,
    RpcDeliveryError,
    SourceFetchError,
    TrackarrError,
    classify_http_error,
    describe_rpc_error,
)


SOURCE = "https://lists.example.com/a.txt"


class TestHttpErrorClassification:
    """Test classification of non-success source responses."""

    def test_rate_limited(self):
        error = classify_http_error(SOURCE, 429)
        assert error.message == "Rate limited by source"
        assert error.status_code == 429

    @pytest.mark.parametrize("status_code", [502, 503, 504])
    def test_temporarily_unavailable(self, status_code):
        error = classify_http_error(SOURCE, status_code)
        assert error.message == f"Source temporarily unavailable (HTTP {status_code})"

    def test_client_error_with_reason(self):
        error = classify_http_error(SOURCE, 404, "Not Found")
        assert error.message == "Source rejected request: Not Found"
        assert error.source == SOURCE

    def test_server_error_without_reason(self):
        error = classify_http_error(SOURCE, 500)
        assert error.message == "Source server error"


class TestExceptionHierarchy:
    """Test exception inheritance and catching."""

    def test_inheritance_chain(self):
        """All pipeline errors derive from TrackarrError."""
        for error in (
            SourceFetchError(SOURCE, "boom"),
            AllSourcesFailedError([]),
            AuthenticationError("no"),
            RpcDeliveryError("down"),
        ):
            assert isinstance(error, TrackarrError)
            assert isinstance(error, Exception)

    def test_catch_by_base_class(self):
        with pytest.raises(TrackarrError):
            raise RpcDeliveryError("Connection refused")

    def test_authentication_default_status(self):
        assert AuthenticationError("Push credential required").status_code == 401

    def test_all_sources_failed_keeps_failures(self):
        failures = [SourceFetchError(SOURCE, "boom"), SourceFetchError("https://b", "boom")]
        error = AllSourcesFailedError(failures)

        assert error.failures == failures
        assert error.message == "All 2 tracker source(s) failed"


class TestErrorStringRepresentation:
    """Test error string formatting."""

    def test_str_with_status(self):
        error = RpcDeliveryError("RPC endpoint returned HTTP 500", status_code=500)
        assert str(error) == "RpcDeliveryError (HTTP 500): RPC endpoint returned HTTP 500"

    def test_str_without_status(self):
        error = SourceFetchError(SOURCE, "Timed out after 15.0s")
        assert str(error) == "SourceFetchError: Timed out after 15.0s"


class TestRpcErrorRendering:
    """Test rendering of JSON-RPC error objects."""

    def test_code_and_message(self):
        assert describe_rpc_error({"code": 1, "message": "Unauthorized"}) == "[1] Unauthorized"

    def test_message_only(self):
        assert describe_rpc_error({"message": "nope"}) == "nope"

    def test_non_dict(self):
        assert describe_rpc_error("bad") == "bad"

    def test_rpc_error_exposed_as_response_data(self):
        rpc_error = {"code": 1, "message": "Unauthorized"}
        error = RpcDeliveryError("failed", rpc_error=rpc_error)
        assert error.response_data == rpc_error
