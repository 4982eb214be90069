"""
Aria2 JSON-RPC Client Service for Trackarr

Dedicated module for pushing tracker lists into a running aria2 daemon
(or any daemon speaking a compatible JSON-RPC 2.0 control interface).

Features:
    - HTTP(S) endpoints via httpx (POST to /jsonrpc)
    - WebSocket endpoints via aiohttp (ws:// or wss://)
    - aria2 secret token support ("token:<secret>" first parameter)
    - Two command dialects:
        * aria2:   aria2.changeGlobalOption with {"bt-tracker": "a,b,c"}
        * generic: configurable method with the tracker array as one parameter
    - Daemon version probe (aria2.getVersion) for health checks

API Reference: https://aria2.github.io/manual/en/html/aria2c.html#rpc-interface
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import aiohttp
import httpx

from .exceptions import RpcDeliveryError, describe_rpc_error
from .structured_logging import generate_request_id

logger = logging.getLogger(__name__)

ARIA2_CHANGE_GLOBAL_OPTION = "aria2.changeGlobalOption"
ARIA2_GET_VERSION = "aria2.getVersion"


@dataclass(frozen=True)
class RpcCommand:
    """A single outbound JSON-RPC 2.0 request."""

    method: str
    params: List[Any] = field(default_factory=list)
    request_id: str = field(default_factory=generate_request_id)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": self.request_id,
            "method": self.method,
            "params": self.params,
        }


class Aria2RpcClient:
    """
    Client for the aria2 JSON-RPC interface.

    Args:
        endpoint: RPC endpoint (e.g. http://localhost:6800/jsonrpc or ws://localhost:6800/jsonrpc)
        secret: aria2 --rpc-secret value (optional)
        dialect: "aria2" or "generic"
        method: Method name for the generic dialect
        timeout: Call timeout in seconds
        transport: Optional httpx transport for HTTP endpoints (used in tests)
    """

    def __init__(
        self,
        endpoint: str,
        secret: Optional[str] = None,
        dialect: str = "aria2",
        method: str = "addTrackers",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = (endpoint or "").strip()
        self.secret = secret or ""
        self.dialect = dialect
        self.method = method
        self.timeout = timeout
        self.transport = transport

    def __repr__(self) -> str:
        secret = f"***{self.secret[-4:]}" if len(self.secret) > 4 else ("***" if self.secret else "none")
        return f"Aria2RpcClient(endpoint={self.endpoint!r}, dialect={self.dialect!r}, secret={secret})"

    @property
    def uses_websocket(self) -> bool:
        return self.endpoint.startswith(("ws://", "wss://"))

    def _token_params(self) -> List[str]:
        return [f"token:{self.secret}"] if self.secret else []

    def build_add_trackers_command(self, trackers: Sequence[str]) -> RpcCommand:
        """
        Build the "register these trackers" command for the configured dialect.

        Args:
            trackers: Tracker URLs in merge order

        Returns:
            RpcCommand ready to send
        """
        trackers = list(trackers)
        if self.dialect == "aria2":
            params = self._token_params() + [{"bt-tracker": ",".join(trackers)}]
            return RpcCommand(method=ARIA2_CHANGE_GLOBAL_OPTION, params=params)

        return RpcCommand(method=self.method, params=self._token_params() + [trackers])

    async def get_version(self) -> Dict[str, Any]:
        """
        Query the daemon version (aria2.getVersion).

        Returns:
            Version result dictionary

        Raises:
            RpcDeliveryError: If the daemon cannot be reached or returns an error
        """
        command = RpcCommand(method=ARIA2_GET_VERSION, params=self._token_params())
        return await self.call(command)

    async def call(self, command: RpcCommand) -> Any:
        """
        Send one JSON-RPC command and return its result.

        Raises:
            RpcDeliveryError: On transport failure or RPC error object
        """
        if not self.endpoint:
            raise RpcDeliveryError("RPC endpoint not configured")

        if self.uses_websocket:
            response = await self._send_ws(command)
        else:
            response = await self._send_http(command)

        return self._extract_result(command, response)

    def _extract_result(self, command: RpcCommand, response: Any) -> Any:
        if not isinstance(response, dict):
            raise RpcDeliveryError(
                f"Malformed JSON-RPC response to {command.method}",
                endpoint=self.endpoint,
            )

        if response.get("error") is not None:
            error = response["error"]
            raise RpcDeliveryError(
                f"Daemon returned an error for {command.method}: {describe_rpc_error(error)}",
                endpoint=self.endpoint,
                rpc_error=error if isinstance(error, dict) else {"message": str(error)},
            )

        if "result" not in response:
            raise RpcDeliveryError(
                f"JSON-RPC response to {command.method} has neither result nor error",
                endpoint=self.endpoint,
            )

        logger.info(f"✓ Daemon acknowledged {command.method}: {response['result']}")
        return response["result"]

    async def _send_http(self, command: RpcCommand) -> Any:
        """POST the command to an HTTP(S) endpoint and return the decoded body."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.endpoint, json=command.to_payload())
        except httpx.TimeoutException as e:
            raise RpcDeliveryError(
                f"RPC call timed out after {self.timeout}s",
                endpoint=self.endpoint,
                original_exception=e,
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RpcDeliveryError(
                f"RPC connection error: {type(e).__name__}: {e}",
                endpoint=self.endpoint,
                original_exception=e,
            ) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        # aria2 answers RPC errors with HTTP 400 and a JSON error object
        if isinstance(body, dict) and body.get("error") is not None:
            return body

        if not response.is_success:
            raise RpcDeliveryError(
                f"RPC endpoint returned HTTP {response.status_code}",
                endpoint=self.endpoint,
                status_code=response.status_code,
            )

        if body is None:
            raise RpcDeliveryError("RPC endpoint returned a non-JSON body", endpoint=self.endpoint)

        return body

    async def _send_ws(self, command: RpcCommand) -> Any:
        """Send the command over a WebSocket and wait for the matching response."""
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.ws_connect(self.endpoint) as ws:
                    # The session timeout only covers the handshake
                    response = await asyncio.wait_for(
                        self._exchange_ws(ws, command), timeout=self.timeout
                    )
        except aiohttp.ClientError as e:
            raise RpcDeliveryError(
                f"RPC websocket error: {type(e).__name__}: {e}",
                endpoint=self.endpoint,
                original_exception=e,
            ) from e
        except asyncio.TimeoutError as e:
            raise RpcDeliveryError(
                f"RPC call timed out after {self.timeout}s",
                endpoint=self.endpoint,
                original_exception=e,
            ) from e

        if response is None:
            raise RpcDeliveryError(
                "Websocket closed before the daemon answered",
                endpoint=self.endpoint,
            )
        return response

    async def _exchange_ws(self, ws: aiohttp.ClientWebSocketResponse, command: RpcCommand) -> Any:
        """Send one command and read frames until the response with its id arrives."""
        await ws.send_str(json.dumps(command.to_payload()))
        logger.debug(f"Sent {command.method} over websocket (id={command.request_id})")

        async for msg in ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                try:
                    data = json.loads(msg.data)
                except ValueError:
                    logger.debug("Ignoring non-JSON websocket frame")
                    continue
                # aria2 also pushes notifications without an id
                if isinstance(data, dict) and data.get("id") == command.request_id:
                    return data
            elif msg.type in (aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.ERROR):
                break

        return None


def get_rpc_client_from_config(config) -> Optional[Aria2RpcClient]:
    """
    Create an Aria2RpcClient from a PipelineConfig.

    Args:
        config: PipelineConfig instance

    Returns:
        Aria2RpcClient if an RPC endpoint is configured, None otherwise
    """
    if not config or not config.rpc_url:
        return None

    return Aria2RpcClient(
        endpoint=config.rpc_url,
        secret=config.rpc_secret,
        dialect=config.rpc_dialect,
        method=config.rpc_method,
        timeout=config.rpc_timeout,
    )
