"""
Pytest configuration for backend tests.

This file configures pytest for the backend test suite, including
fixtures and test discovery settings.
"""

import json
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import httpx
import pytest

# Add backend directory to Python path for imports
backend_root = Path(__file__).parent.parent
sys.path.insert(0, str(backend_root))


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def source_transport() -> Callable[..., httpx.MockTransport]:
    """
    Factory for a MockTransport serving tracker sources.

    Each mapping value is either a body string (served with 200), an
    (status_code, body) tuple, or an exception instance raised for the request.
    Every requested URL is appended to transport.requested.
    """
    def _factory(routes: Dict[str, Union[str, tuple, Exception]]) -> httpx.MockTransport:
        requested: List[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            requested.append(url)
            route = routes.get(url)
            if route is None:
                return httpx.Response(404, text="not found")
            if isinstance(route, Exception):
                raise route
            if isinstance(route, tuple):
                status, body = route
                return httpx.Response(status, text=body)
            return httpx.Response(200, text=route)

        transport = httpx.MockTransport(handler)
        transport.requested = requested
        return transport

    return _factory


@pytest.fixture
def rpc_transport() -> Callable[..., httpx.MockTransport]:
    """
    Factory for a MockTransport acting as an aria2 JSON-RPC endpoint.

    The response callable receives the decoded JSON-RPC request and returns
    an httpx.Response. Defaults to {"result": "OK"}. Every decoded request is
    appended to transport.calls.
    """
    def _factory(respond: Optional[Callable[[dict], httpx.Response]] = None) -> httpx.MockTransport:
        calls: List[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            payload = json.loads(request.content)
            calls.append(payload)
            if respond is not None:
                return respond(payload)
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": "OK"})

        transport = httpx.MockTransport(handler)
        transport.calls = calls
        return transport

    return _factory
