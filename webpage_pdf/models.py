"""
Request/response models for the webpage PDF service.
"""

from datetime import datetime
from typing import Any, Dict, Sequence

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field


class GeneratePDFRequest(BaseModel):
    """URL to PDF request. ``url`` is the only accepted property."""

    model_config = ConfigDict(extra="forbid")

    url: AnyHttpUrl = Field(..., description="Absolute URL of the page to render")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    timestamp: datetime
    version: str
    environment: str
    browser_configured: bool = True


def describe_validation_errors(errors: Sequence[Dict[str, Any]]) -> str:
    """
    Build a single client-facing message from request validation errors.

    Unexpected properties take precedence, so a body such as
    ``{"url": "not-a-url", "extra": 1}`` is reported as
    "Unexpected property: extra".

    Args:
        errors: Error dicts as returned by ``RequestValidationError.errors()``

    Returns:
        Human-readable message
    """
    unexpected = [
        str(error["loc"][-1])
        for error in errors
        if error.get("type") == "extra_forbidden" and error.get("loc")
    ]
    if unexpected:
        return f"Unexpected property: {', '.join(unexpected)}"

    if not errors:
        return "Invalid request body"

    first = errors[0]
    loc = tuple(first.get("loc") or ())
    msg = first.get("msg", "invalid value")

    if loc and loc[-1] == "url":
        if first.get("type") == "missing":
            return "Missing required field: url"
        return f"Invalid url: {msg}"

    return f"Invalid request body: {msg}"
