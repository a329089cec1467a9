# =============================================================================
# FastAPI Application
# =============================================================================
#
# Startup builds the orchestrator once (lifespan). Misconfiguration such
# as a missing credentials.json aborts startup here rather than failing
# every request.
#
# Run locally:
#   uvicorn site_analyst.main:app --port 8080
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from site_analyst.agents.orchestrator import Orchestrator, create_orchestrator
from site_analyst.api.query import router as query_router
from site_analyst.config import Settings, get_settings
from site_analyst.models.responses import ErrorResponse

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    orchestrator: Orchestrator | None = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        settings: Defaults to the cached environment settings.
        orchestrator: Pre-built orchestrator; when omitted one is created
            from settings during startup.
    """
    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "orchestrator", None) is None:
            app.state.orchestrator = create_orchestrator(settings)
        logger.info("Routes registered: POST /query, GET /health")
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.orchestrator = orchestrator
    app.include_router(query_router)

    @app.exception_handler(RequestValidationError)
    async def invalid_request_handler(
        request: Request, exc: RequestValidationError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                error="Invalid request",
                details=jsonable_encoder(exc.errors()),
            ).model_dump(exclude_none=True),
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("site_analyst.main:app", host="0.0.0.0", port=8080)
