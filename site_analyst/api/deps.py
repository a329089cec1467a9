# =============================================================================
# API Dependencies
# =============================================================================
#
# The orchestrator is built once in the app lifespan (main.py) and stored
# on app.state. Routes receive it through get_orchestrator(), which tests
# replace via app.dependency_overrides.
# =============================================================================

from __future__ import annotations

from fastapi import HTTPException, Request

from site_analyst.agents.orchestrator import Orchestrator


def get_orchestrator(request: Request) -> Orchestrator:
    """
    FastAPI dependency returning the shared Orchestrator.

    Raises:
        HTTPException 503: The app started without an orchestrator.
    """
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=503,
            detail="Orchestrator is not initialized.",
        )
    return orchestrator
