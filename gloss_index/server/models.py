"""Pydantic response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for response serialization
and automatic OpenAPI documentation. Pydantic models enforce field types
at runtime and generate JSON Schema that appears in the /docs UI.

HOW: One model per response shape. The video lookup responses keep the
camelCase ``videoUrl`` field the front-end already consumes.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Error responses use ErrorResponse (``detail``), as FastAPI does
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class VideoResponse(BaseModel):
    """Best-matching video fragment for a gloss.

    RULES:
    - videoUrl is a media fragment URL (``path#t=start,end``)
    """

    videoUrl: str = Field(description="Media fragment URL of the best-ranked video.")

    model_config = {"json_schema_extra": {
        "examples": [
            {"videoUrl": "/matignon/videos/speech_01.mp4#t=12.4,15.1"}
        ]
    }}


class VideoNotFoundResponse(BaseModel):
    """Returned with 404 when the index has no video for the gloss."""

    detail: str = Field(description="Human-readable message.")
    videoUrl: Optional[str] = Field(default=None, description="Always null.")


class ErrorResponse(BaseModel):
    """Standard error response body.

    WHY: All error responses use the same schema for consistent
    client-side error handling.

    RULES:
    - detail is always a human-readable error message
    """

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    """Health check response.

    WHY: Load balancers need to know the process is alive; operators
    need to know whether the index is loaded (degraded mode otherwise)
    and how large the dataset behind it is.
    """

    status: str = Field(description="Service health status: 'ok' or 'degraded'.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
    index_loaded: bool = Field(description="Whether the video index is loaded in memory.")
    source: str = Field(description="Provenance label of the indexed corpus.", json_schema_extra={"example": "Matignon-LSF"})
    keys: int = Field(default=0, description="Number of keys in the loaded index.")
    entries: int = Field(default=0, description="Number of candidate video fragments across all keys.")
    overrides: int = Field(default=0, description="Number of curated gloss overrides.")
