# =============================================================================
# Agents Package — LangGraph Multi-Agent Orchestration
# =============================================================================
#   - orchestrator.py: LangGraph graph — classifies intent, routes to one or
#     both agents, aggregates dual-agent answers
#   - classifier.py: LLM intent classifier with keyword fallback
#   - analytics.py: GA4 agent — plan, allowlist validation, runReport, explain
#   - seo.py: Sheets agent — load, plan, filter/group/sort/limit, explain
#   - base.py: AgentResult and plan decoding shared by both agents
# =============================================================================
