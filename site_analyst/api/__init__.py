# =============================================================================
# API Package — FastAPI Route Handlers
# =============================================================================
#   - query.py: POST /query and GET /health
#   - deps.py: orchestrator dependency
# =============================================================================
