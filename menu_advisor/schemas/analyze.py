"""
analyze.py (schemas)

Response envelopes for the analyze endpoint.

Wire names are camelCase ("requestId") to match the web client;
Python code uses snake_case through aliases.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from menu_advisor.schemas.menu import MenuItem


class AnalyzeResponse(BaseModel):
    """
    Successful analysis.

    message is only set when no items could be identified.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(default=True, description="Always true for this model")
    items: List[MenuItem] = Field(default_factory=list, description="Extracted menu items")
    message: Optional[str] = Field(
        default=None,
        description="Explanation when the item list is empty",
        examples=["No menu items could be identified. Try a clearer image."]
    )
    request_id: str = Field(..., alias="requestId", description="Correlation ID for logs")


class ErrorDetail(BaseModel):
    code: str = Field(..., description="Machine-readable error code", examples=["INVALID_FILE_TYPE"])
    message: str = Field(..., description="Human-readable message")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Extra context")


class ErrorResponse(BaseModel):
    """Standard error envelope returned for every failed request."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(default=False, description="Always false for errors")
    error: ErrorDetail
    request_id: Optional[str] = Field(default=None, alias="requestId", description="Correlation ID for logs")


class HealthResponse(BaseModel):
    status: str = Field(..., examples=["ok"])
    version: str = Field(..., examples=["1.0.0"])
