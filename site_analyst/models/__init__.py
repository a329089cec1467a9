# =============================================================================
# Models Package — Pydantic V2 Schemas
# =============================================================================
#   - requests.py / responses.py: the public HTTP contract
#   - plans.py: LLM-inferred reporting plans (internal, validated strictly)
# =============================================================================
