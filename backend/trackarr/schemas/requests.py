"""
API Request Schemas

Pydantic models for API requests.
Used for OpenAPI documentation and request validation.
"""

from typing import List
from pydantic import BaseModel, Field, field_validator


class PushRequest(BaseModel):
    """Optional body for an on-demand push."""
    trackers: List[str] = Field(
        default_factory=list,
        description="Extra tracker URLs merged after all fetched sources",
        max_length=5000,
        examples=[["udp://tracker.opentrackr.org:1337/announce"]]
    )

    @field_validator('trackers')
    @classmethod
    def strip_trackers(cls, v: List[str]) -> List[str]:
        return [t.strip() for t in v if t and t.strip()]

    model_config = {
        "json_schema_extra": {
            "example": {
                "trackers": [
                    "udp://tracker.opentrackr.org:1337/announce",
                    "https://tracker.example.org/announce"
                ]
            }
        }
    }
