"""
Typed Exception Hierarchy for Trackarr

This module defines the exceptions raised along the tracker pipeline.

Exception Hierarchy:
    TrackarrError (base)
    ├── SourceFetchError       (one source failed, recovered inside the fetcher)
    ├── AllSourcesFailedError  (every source failed, non-fatal)
    ├── AuthenticationError    (push credential missing or wrong, terminal)
    └── RpcDeliveryError       (JSON-RPC push failed, terminal)

Per-source errors are carried inside FetchResult values and never escape the
fetcher. Authentication and delivery errors end the invocation and are mapped
to HTTP status codes by the API layer.
"""

import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


# ============================================================================
# Exception Hierarchy
# ============================================================================

class TrackarrError(Exception):
    """
    Base exception for all Trackarr errors.

    Attributes:
        message: Human-readable error description
        status_code: HTTP status code if applicable
        response_data: Raw response data for debugging
    """

    def __init__(self, message: str, status_code: int = None, response_data: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_data = response_data

    def __str__(self) -> str:
        if self.status_code:
            return f"{self.__class__.__name__} (HTTP {self.status_code}): {self.message}"
        return f"{self.__class__.__name__}: {self.message}"


class SourceFetchError(TrackarrError):
    """
    A single tracker source could not be retrieved.

    Raised (and immediately captured into a FetchResult) for:
    - Connection failures and DNS errors
    - Timeouts
    - Non-2xx HTTP responses
    - Invalid source URLs
    """

    def __init__(
        self,
        source: str,
        message: str,
        status_code: int = None,
        original_exception: Exception = None
    ):
        super().__init__(message, status_code=status_code)
        self.source = source
        self.original_exception = original_exception


class AllSourcesFailedError(TrackarrError):
    """
    Every configured source failed during one invocation.

    Non-fatal: the pipeline logs it and continues with an empty fetched set.
    """

    def __init__(self, failures: List[SourceFetchError]):
        super().__init__(f"All {len(failures)} tracker source(s) failed")
        self.failures = failures


class AuthenticationError(TrackarrError):
    """
    A push invocation presented a missing or mismatched credential.

    Uses 401 when no credential was supplied and 403 when the credential
    was wrong or the push path is not enabled.
    """

    def __init__(self, message: str, status_code: int = 401):
        super().__init__(message, status_code=status_code)


class RpcDeliveryError(TrackarrError):
    """
    The JSON-RPC push to the download daemon failed.

    Covers transport failures (connection, timeout, non-2xx status, invalid
    JSON) as well as RPC-level error objects returned by the daemon.
    """

    def __init__(
        self,
        message: str,
        endpoint: str = None,
        rpc_error: Optional[Dict[str, Any]] = None,
        status_code: int = None,
        original_exception: Exception = None
    ):
        super().__init__(message, status_code=status_code, response_data=rpc_error)
        self.endpoint = endpoint
        self.rpc_error = rpc_error
        self.original_exception = original_exception


# ============================================================================
# Convenience Functions
# ============================================================================

def classify_http_error(source: str, status_code: int, reason: str = "") -> SourceFetchError:
    """
    Build a SourceFetchError for a non-success HTTP response.

    Args:
        source: Source URL that returned the response
        status_code: HTTP status code
        reason: Optional reason phrase

    Returns:
        SourceFetchError describing the response
    """
    if status_code == 429:
        message = "Rate limited by source"
    elif status_code in (502, 503, 504):
        message = f"Source temporarily unavailable (HTTP {status_code})"
    elif 400 <= status_code < 500:
        message = f"Source rejected request{': ' + reason if reason else ''}"
    elif status_code >= 500:
        message = f"Source server error{': ' + reason if reason else ''}"
    else:
        message = f"Unexpected response status {status_code}"

    return SourceFetchError(source, message, status_code=status_code)


def describe_rpc_error(error: Any) -> str:
    """Render a JSON-RPC error object as a short message."""
    if isinstance(error, dict):
        code = error.get("code")
        message = error.get("message", "unknown error")
        return f"[{code}] {message}" if code is not None else str(message)
    return str(error)
