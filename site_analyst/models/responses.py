# =============================================================================
# API Response Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming OUT of the API. Keys are
# serialised in camelCase (FastAPI dumps response models by alias).
# =============================================================================

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(BaseModel):
    """Response for GET /health — confirms the API is running."""

    status: str = "ok"
    timestamp: datetime
    version: str


class QueryMetadata(BaseModel):
    """Routing details attached to every /query answer."""

    model_config = _CAMEL

    intent: str = Field(description="analytics, seo, both, or unknown on failure")
    agents_used: list[str] = Field(default_factory=list)
    processing_time_ms: int = Field(description="Wall-clock time in milliseconds")


class QueryResponse(BaseModel):
    """
    Response for POST /query.

    `data` depends on the intent:
      - analytics → GA4 runReport response
      - seo       → {plan, resultCount, results}
      - both      → {"analytics": ..., "seo": ...}
    """

    model_config = _CAMEL

    success: bool
    response: str = Field(description="Natural-language answer or failure explanation")
    data: Any = None
    metadata: QueryMetadata
    error: str | None = None


class ErrorResponse(BaseModel):
    """Body for 400/500 responses produced outside the orchestrator."""

    success: bool = False
    error: str
    response: str | None = None
    details: list[dict[str, Any]] | None = None
