"""
Shared FastAPI dependencies.

The pipeline and scheduler are created once in create_app() and stored on
app.state; routes receive them through these dependencies.
"""

from typing import Optional

from fastapi import Request

from trackarr.processors.pipeline import TrackerPipeline
from trackarr.workers.push_scheduler import PushScheduler


def get_pipeline(request: Request) -> TrackerPipeline:
    return request.app.state.pipeline


def get_scheduler(request: Request) -> Optional[PushScheduler]:
    return getattr(request.app.state, "scheduler", None)
