"""
Response envelope shared by every endpoint.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    """
    Standard response envelope.

    Attributes:
        success: Whether the operation succeeded
        message: Human-readable outcome
        data: Payload (null for deletions and failures)
    """
    success: bool = Field(default=True, description="Whether the operation succeeded")
    message: str = Field(default="", description="Human-readable outcome")
    data: Optional[Any] = Field(default=None, description="Response payload")


def ok(data: Any = None, message: str = "") -> ApiResponse:
    return ApiResponse(success=True, message=message, data=data)
