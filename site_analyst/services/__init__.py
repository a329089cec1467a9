# =============================================================================
# Services Package — External Collaborators and Pure Helpers
# =============================================================================
#   - llm.py: Multi-provider LLM abstraction + retrying gateway
#   - ga4.py: Google Analytics Data API report client
#   - sheets.py: Google Sheets table loader (gspread)
#   - table_ops.py: Deterministic filter/group/sort/limit over row records
# =============================================================================
