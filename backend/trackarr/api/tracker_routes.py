"""
Tracker List API Routes

Endpoints:
- GET /          : Merged tracker list as plain text (pull)
- GET /{label}   : Same content; the label is an opaque, ignored path segment
                   so each client tool can use its own memorable URL
- POST /push     : Authenticated on-demand push into the aria2 daemon

Pull endpoints accept extra trackers through the repeatable `tracker`
query parameter. The push endpoint reads its credential from the
X-Push-Token header or the `token` query parameter, and extra trackers
from an optional JSON body.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Query
from fastapi.responses import PlainTextResponse

from trackarr.api.dependencies import get_pipeline
from trackarr.processors.pipeline import TrackerPipeline
from trackarr.schemas.requests import PushRequest
from trackarr.schemas.responses import ErrorResponse, PushResponse
from trackarr.services.exceptions import AuthenticationError, RpcDeliveryError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/push",
    response_model=PushResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Credential missing"},
        403: {"model": ErrorResponse, "description": "Credential invalid or push path disabled"},
        502: {"model": ErrorResponse, "description": "Daemon RPC call failed"},
    },
)
async def push_trackers(
    payload: Optional[PushRequest] = Body(None),
    x_push_token: Optional[str] = Header(None),
    token: Optional[str] = Query(None, description="Push credential (alternative to X-Push-Token)"),
    pipeline: TrackerPipeline = Depends(get_pipeline),
):
    """
    Push the merged tracker list into the download daemon now.

    Returns:
        PushResponse with the delivered tracker count and daemon result

    Raises:
        HTTPException: 401/403 on authentication failure, 502 on RPC failure
    """
    credential = x_push_token or token
    extra = payload.trackers if payload else None

    try:
        outcome = await pipeline.push(extra=extra, credential=credential)
    except AuthenticationError as e:
        headers = {"WWW-Authenticate": "Token"} if e.status_code == 401 else None
        raise HTTPException(status_code=e.status_code, detail=e.message, headers=headers)
    except RpcDeliveryError as e:
        logger.error(f"✗ On-demand push failed: {e}")
        raise HTTPException(status_code=502, detail=e.message)

    return outcome.to_dict()


async def _pull(pipeline: TrackerPipeline, extra: Optional[List[str]]) -> PlainTextResponse:
    body = await pipeline.pull(extra=extra)
    return PlainTextResponse(content=body)


@router.get("/", response_class=PlainTextResponse)
async def pull_trackers(
    tracker: Optional[List[str]] = Query(None, description="Extra tracker URL (repeatable)"),
    pipeline: TrackerPipeline = Depends(get_pipeline),
):
    """Merged tracker list, one URL per line."""
    return await _pull(pipeline, tracker)


@router.get("/{label}", response_class=PlainTextResponse)
async def pull_trackers_labeled(
    label: str,
    tracker: Optional[List[str]] = Query(None, description="Extra tracker URL (repeatable)"),
    pipeline: TrackerPipeline = Depends(get_pipeline),
):
    """Merged tracker list under a client-chosen label. The label has no effect."""
    return await _pull(pipeline, tracker)
