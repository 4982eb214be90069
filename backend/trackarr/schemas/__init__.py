"""
API Schemas

Pydantic models for API request validation and response serialization.
"""

from .requests import PushRequest
from .responses import ErrorResponse, PushResponse

__all__ = ["PushRequest", "PushResponse", "ErrorResponse"]
