# =============================================================================
# Site Analyst
# =============================================================================
# Answers natural-language questions about web analytics (GA4) and SEO
# audit data (Screaming Frog exports in Google Sheets). Each question is
# classified, routed to one or both data agents, and answered in plain
# language.
#
# Package structure:
#   site_analyst/
#   ├── api/          → FastAPI route handlers (POST /query, GET /health)
#   ├── agents/       → LangGraph orchestrator, intent classifier, GA4 and
#   │                    SEO agents
#   ├── models/       → Pydantic V2 request/response and reporting-plan schemas
#   └── services/     → LLM providers + gateway, GA4 and Sheets clients,
#                        table operations
# =============================================================================
