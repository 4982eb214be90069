"""
API Response Schemas

Pydantic models for API responses.
"""

from typing import Any, Optional
from pydantic import BaseModel, Field


class PushResponse(BaseModel):
    """Response for an acknowledged push."""
    success: bool = Field(True, description="Whether the daemon acknowledged the push")
    tracker_count: int = Field(..., description="Number of trackers delivered", ge=0)
    method: str = Field(..., description="JSON-RPC method that was called")
    result: Optional[Any] = Field(None, description="Daemon result payload")

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": True,
                "tracker_count": 42,
                "method": "aria2.changeGlobalOption",
                "result": "OK"
            }
        }
    }


class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str = Field(..., description="Error message")
