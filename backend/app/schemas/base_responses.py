"""
Base response schemas shared by the MOVT endpoints.

Mutations that have nothing else to return answer with one of these, so the
mobile client always gets a JSON object with a ``success`` flag.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class SuccessResponse(BaseModel):
    """Standard success response for operations."""

    success: bool = Field(default=True, description="Operation success status")
    message: str = Field(description="Human-readable success message")
    data: Optional[Dict[str, Any]] = Field(default=None, description="Optional additional data")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "message": "Messages marked as read",
                "data": {"thread_id": "01HZX3Y0W9V3S6Q6S1Q1Q1Q1Q1"},
            }
        }
    )


class DeleteResponse(BaseModel):
    """Standard response for delete operations."""

    success: bool = Field(default=True, description="Deletion success status")
    message: str = Field(description="Human-readable deletion message")
