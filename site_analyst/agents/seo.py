# =============================================================================
# SEO Agent — Screaming Frog crawl exports in Google Sheets
# =============================================================================
#
# PIPELINE (strictly sequential):
#   1. resolve  — spreadsheet id from the request, else the configured default
#   2. load     — first worksheet, header row → columns, every row
#   3. infer    — LLM builds a TablePlan from the columns + 3 sample rows
#   4. execute  — filter/group/sort/limit (services.table_ops)
#   5. explain  — LLM explains the results in plain language
#
# There is no allowlist: the columns are discovered at load time and a
# plan that names a missing column simply matches nothing.
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

from site_analyst.agents.base import (
    EXPLAINER_TEMPERATURE,
    NO_FABRICATION,
    AgentResult,
    ChatGateway,
    infer_plan,
    to_json,
)
from site_analyst.errors import MissingConfigurationError
from site_analyst.models.plans import TablePlan
from site_analyst.services.sheets import Row, TableLoader
from site_analyst.services.table_ops import execute_operations

logger = logging.getLogger(__name__)

SAMPLE_ROWS = 3

_PLANNER_SYSTEM = "You are a data processing expert. Return only valid JSON."

_EXPLAINER_SYSTEM = "You are an SEO consultant."


class SEOAgent:
    """
    Answers SEO-audit questions over a crawl export.

    Args:
        gateway: LLM gateway for planning and explanation.
        table_loader: Loads a spreadsheet as row records.
        default_spreadsheet_id: Used when a request carries no id.
    """

    name = "seo"

    def __init__(
        self,
        gateway: ChatGateway,
        table_loader: TableLoader,
        default_spreadsheet_id: str | None = None,
    ) -> None:
        self._gateway = gateway
        self._tables = table_loader
        self._default_spreadsheet_id = default_spreadsheet_id
        logger.info("SEO agent initialized")

    async def process_query(
        self, question: str, spreadsheet_id: str | None = None,
    ) -> AgentResult:
        """Run resolve → load → infer → execute → explain for one question."""
        try:
            logger.info("Processing SEO query")

            table_id = self.resolve_spreadsheet_id(spreadsheet_id)
            rows = await self._tables.load_table(table_id)
            plan = await self.infer_plan(question, rows)
            results = execute_operations(rows, plan)
            logger.info(
                "Table plan matched %d of %d rows", results["resultCount"], len(rows),
            )
            explanation = await self.explain(question, results, total_rows=len(rows))

            return AgentResult(success=True, data=results, explanation=explanation)
        except Exception as e:
            logger.error("SEO agent error: %s", e)
            return AgentResult(
                success=False,
                explanation=f"Failed to process SEO query: {e}",
                error=str(e),
            )

    def resolve_spreadsheet_id(self, spreadsheet_id: str | None) -> str:
        table_id = spreadsheet_id or self._default_spreadsheet_id
        if not table_id:
            raise MissingConfigurationError(
                "No spreadsheet ID provided. Set SEO_SPREADSHEET_ID or "
                "include spreadsheetId in the request."
            )
        return table_id

    async def infer_plan(self, question: str, rows: list[Row]) -> TablePlan:
        columns = list(rows[0].keys()) if rows else []
        prompt = (
            "You are a data analysis expert. Given a natural-language SEO "
            "question and spreadsheet data, create a data processing plan.\n\n"
            f"Available columns: {', '.join(columns)}\n\n"
            f"Sample data:\n{to_json(rows[:SAMPLE_ROWS])}\n\n"
            f'Question: "{question}"\n\n'
            "Return a JSON object with this structure:\n"
            "{\n"
            '  "operation": "filter" | "aggregate" | "group" | "calculate",\n'
            '  "filters": [{"column": "columnName", "operator": "==|!=|>|<|contains", '
            '"value": "value"}],\n'
            '  "groupBy": "columnName",\n'
            '  "sortBy": {"column": "columnName", "desc": true},\n'
            '  "limit": 10,\n'
            '  "outputFormat": "natural" | "json"\n'
            "}\n\n"
            "Rules:\n"
            "- Use column names exactly as listed above\n"
            "- Omit groupBy, sortBy and limit when the question does not need them\n\n"
            "Return ONLY valid JSON."
        )
        return await infer_plan(self._gateway, _PLANNER_SYSTEM, prompt, TablePlan)

    async def explain(
        self, question: str, results: dict[str, Any], total_rows: int,
    ) -> str:
        prompt = (
            "You are an SEO expert. Explain the following SEO analysis results.\n\n"
            f'User Question: "{question}"\n\n'
            f"Rows analysed: {total_rows}\n"
            f"Results:\n{to_json(results)}\n\n"
            "Provide a clear, actionable explanation that:\n"
            "1. Leads with the direct answer to the user's question\n"
            "2. Highlights SEO risks or opportunities\n"
            '3. Provides context (e.g., "X out of Y pages")\n'
            "4. Uses natural language\n\n"
            f"{NO_FABRICATION}\n\n"
            "Keep it under 200 words."
        )
        return await self._gateway.chat(
            [
                {"role": "system", "content": _EXPLAINER_SYSTEM},
                {"role": "user", "content": prompt},
            ],
            temperature=EXPLAINER_TEMPERATURE,
        )
