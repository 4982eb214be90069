"""
Delivery Dispatcher

Routes a MergedTrackerSet to one of its two sinks:

    emit_as_response - plain-text body, one tracker per line
    push_to_daemon   - one JSON-RPC call registering the trackers with aria2
"""

import logging
from dataclasses import dataclass
from typing import Any

from .aria2_client import Aria2RpcClient
from .exceptions import RpcDeliveryError
from .tracker_list import MergedTrackerSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PushOutcome:
    """Acknowledged push of a tracker set."""

    tracker_count: int
    method: str
    result: Any = None

    def to_dict(self) -> dict:
        return {
            "success": True,
            "tracker_count": self.tracker_count,
            "method": self.method,
            "result": self.result,
        }


def emit_as_response(merged: MergedTrackerSet) -> str:
    """Serialize the merged set as a newline-joined plain-text body."""
    return merged.to_text()


async def push_to_daemon(merged: MergedTrackerSet, rpc_client: Aria2RpcClient) -> PushOutcome:
    """
    Send the merged set to the daemon as a single JSON-RPC call.

    Args:
        merged: Trackers to register
        rpc_client: Configured RPC client

    Returns:
        PushOutcome when the daemon acknowledged the call

    Raises:
        RpcDeliveryError: If no client is configured, the transport failed,
                          or the daemon returned an error object
    """
    if rpc_client is None:
        raise RpcDeliveryError("Daemon RPC endpoint not configured (ARIA2_RPC_URL)")

    command = rpc_client.build_add_trackers_command(merged.to_list())
    logger.info(
        f"Pushing {len(merged)} tracker(s) via {command.method} "
        f"({'websocket' if rpc_client.uses_websocket else 'http'})"
    )
    result = await rpc_client.call(command)

    logger.info(f"✓ Pushed {len(merged)} tracker(s) to {rpc_client.endpoint}")
    return PushOutcome(tracker_count=len(merged), method=command.method, result=result)
