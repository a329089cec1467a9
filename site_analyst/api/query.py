# =============================================================================
# Query API — Natural-Language Questions over GA4 + SEO Data
# =============================================================================
#
#   POST /query  — route a question through the orchestrator
#   GET  /health — liveness probe
#
# Request validation happens in the Pydantic model, routing and failure
# handling in the orchestrator.
# Status code follows the orchestrator's verdict: 200 on success,
# 500 on any failed answer.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from site_analyst.agents.orchestrator import Orchestrator, Query
from site_analyst.api.deps import get_orchestrator
from site_analyst.models.requests import QueryRequest
from site_analyst.models.responses import (
    ErrorResponse,
    HealthResponse,
    QueryMetadata,
    QueryResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/query",
    response_model=QueryResponse,
    tags=["Query"],
    summary="Ask a question about site analytics or SEO audit data",
    responses={
        400: {"model": ErrorResponse, "description": "Malformed request body"},
        500: {"model": QueryResponse, "description": "The question could not be answered"},
    },
)
async def query_endpoint(
    request: QueryRequest,
    http_response: Response,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> QueryResponse | JSONResponse:
    logger.info(
        'Received query: "%s" (propertyId: %s)',
        request.query[:80], request.property_id or "none",
    )

    try:
        result = await orchestrator.process_query(
            Query(
                question=request.query,
                property_id=request.property_id,
                spreadsheet_id=request.spreadsheet_id,
            )
        )
    except Exception as e:
        logger.exception("Query endpoint error: %s", e)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                response="Internal server error", error=str(e),
            ).model_dump(exclude_none=True),
        )

    http_response.status_code = 200 if result.success else 500

    return QueryResponse(
        success=result.success,
        response=result.response,
        data=result.data,
        error=result.error,
        metadata=QueryMetadata(**asdict(result.metadata)),
    )


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health(request: Request) -> HealthResponse:
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(UTC),
        version=request.app.state.settings.app_version,
    )
