# =============================================================================
# Analytics Agent — GA4 questions via the Google Analytics Data API
# =============================================================================
#
# PIPELINE (strictly sequential):
#   1. infer    — LLM turns the question into an AnalyticsPlan
#   2. validate — every metric/dimension must be on the allowlist
#   3. fetch    — runReport against `properties/{property_id}`
#   4. explain  — LLM explains the report in plain language
#
# A plan that fails validation never reaches GA4. Any failure in any step
# becomes AgentResult(success=False); nothing propagates to the caller.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import date
from typing import Any

from site_analyst.agents.base import (
    EXPLAINER_TEMPERATURE,
    NO_FABRICATION,
    AgentResult,
    ChatGateway,
    infer_plan,
    to_json,
)
from site_analyst.errors import PlanValidationError
from site_analyst.models.plans import AnalyticsPlan
from site_analyst.services.ga4 import ReportClient

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Allowlist — GA4 fields the agent may request
# ---------------------------------------------------------------------------

VALID_METRICS: tuple[str, ...] = (
    "activeUsers",
    "sessions",
    "screenPageViews",
    "eventCount",
    "conversions",
    "totalRevenue",
    "averageSessionDuration",
    "bounceRate",
    "engagementRate",
    "newUsers",
    "userEngagementDuration",
    "sessionConversionRate",
)

VALID_DIMENSIONS: tuple[str, ...] = (
    "date",
    "pagePath",
    "pageTitle",
    "country",
    "city",
    "deviceCategory",
    "browser",
    "operatingSystem",
    "sessionSource",
    "sessionMedium",
    "sessionCampaignName",
    "landingPage",
    "eventName",
)


_PLANNER_SYSTEM = "You are a GA4 reporting expert. Return only valid JSON."

_EXPLAINER_SYSTEM = "You are a helpful data analyst."


def validate_plan(
    plan: AnalyticsPlan,
    metrics: Iterable[str] = VALID_METRICS,
    dimensions: Iterable[str] = VALID_DIMENSIONS,
) -> None:
    """
    Reject any plan field outside the allowlist.

    Checks the metric and dimension lists, then the names referenced by
    orderBy clauses.

    Raises:
        PlanValidationError: On the first disallowed field.
    """
    metrics = tuple(metrics)
    dimensions = tuple(dimensions)

    for metric in plan.metrics:
        if metric not in metrics:
            raise PlanValidationError("metric", metric, metrics)

    for dimension in plan.dimensions:
        if dimension not in dimensions:
            raise PlanValidationError("dimension", dimension, dimensions)

    for order in plan.order_by:
        if order.metric and order.metric.metric_name not in metrics:
            raise PlanValidationError("metric", order.metric.metric_name, metrics)
        if order.dimension and order.dimension.dimension_name not in dimensions:
            raise PlanValidationError(
                "dimension", order.dimension.dimension_name, dimensions,
            )


def build_report_request(property_id: str, plan: AnalyticsPlan) -> dict[str, Any]:
    """Translate a validated plan into a Data API runReport request body."""
    return {
        "property": f"properties/{property_id}",
        "dateRanges": [
            r.model_dump(by_alias=True, exclude_none=True) for r in plan.date_ranges
        ],
        "dimensions": [{"name": name} for name in plan.dimensions],
        "metrics": [{"name": name} for name in plan.metrics],
        "limit": plan.limit,
        "orderBys": [
            o.model_dump(by_alias=True, exclude_none=True) for o in plan.order_by
        ],
    }


class AnalyticsAgent:
    """
    Answers GA4 questions for a given property.

    Args:
        gateway: LLM gateway for planning and explanation.
        report_client: GA4 report runner.
        metrics / dimensions: Allowlist; defaults to the module constants.
        today: Date source for the planner prompt (injectable for tests).
    """

    name = "analytics"

    def __init__(
        self,
        gateway: ChatGateway,
        report_client: ReportClient,
        metrics: Iterable[str] = VALID_METRICS,
        dimensions: Iterable[str] = VALID_DIMENSIONS,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._gateway = gateway
        self._reports = report_client
        self._metrics = tuple(metrics)
        self._dimensions = tuple(dimensions)
        self._today = today
        logger.info("Analytics agent initialized")

    async def process_query(self, property_id: str, question: str) -> AgentResult:
        """Run infer → validate → fetch → explain for one question."""
        try:
            logger.info("Processing GA4 query for property %s", property_id)

            plan = await self.infer_plan(question)
            validate_plan(plan, self._metrics, self._dimensions)
            report = await self.fetch(property_id, plan)
            explanation = await self.explain(question, plan, report)

            return AgentResult(success=True, data=report, explanation=explanation)
        except Exception as e:
            logger.error("Analytics agent error: %s", e)
            return AgentResult(
                success=False,
                explanation=f"Failed to process analytics query: {e}",
                error=str(e),
            )

    async def infer_plan(self, question: str) -> AnalyticsPlan:
        prompt = (
            "You are a Google Analytics 4 expert. Given a natural-language "
            "analytics question, infer the GA4 reporting plan.\n\n"
            f"Today's date: {self._today().isoformat()}\n"
            f"Available metrics: {', '.join(self._metrics)}\n"
            f"Available dimensions: {', '.join(self._dimensions)}\n\n"
            f'Question: "{question}"\n\n'
            "Return a JSON object with this structure:\n"
            "{\n"
            '  "metrics": ["metric1", "metric2"],\n'
            '  "dimensions": ["dimension1"],\n'
            '  "dateRanges": [{"startDate": "YYYY-MM-DD", "endDate": "YYYY-MM-DD"}],\n'
            '  "orderBy": [{"metric": {"metricName": "metricName"}, "desc": true}],\n'
            '  "limit": 10\n'
            "}\n\n"
            "Rules:\n"
            "- Use ONLY metrics and dimensions from the lists above\n"
            "- For \"last N days\", calculate dates from today's date, or use "
            'relative dates such as "7daysAgo", "yesterday", "today"\n'
            "- For \"previous period\", create two date ranges\n"
            "- Include orderBy only if sorting is implied; order by a "
            '{"dimension": {"dimensionName": ...}} for dimension sorts\n'
            "- Set appropriate limit (default 10)\n\n"
            "Return ONLY valid JSON, no explanation."
        )
        return await infer_plan(self._gateway, _PLANNER_SYSTEM, prompt, AnalyticsPlan)

    async def fetch(self, property_id: str, plan: AnalyticsPlan) -> dict[str, Any]:
        request = build_report_request(property_id, plan)
        logger.info("Executing GA4 query: %s", request)
        report = await self._reports.run_report(request)
        logger.info("GA4 returned %d rows", len(report.get("rows") or []))
        return report

    async def explain(
        self, question: str, plan: AnalyticsPlan, report: dict[str, Any],
    ) -> str:
        date_ranges = [
            r.model_dump(by_alias=True, exclude_none=True) for r in plan.date_ranges
        ]
        prompt = (
            "You are a data analyst. Explain the following GA4 results in "
            "natural language.\n\n"
            f'User Question: "{question}"\n\n'
            "Query Details:\n"
            f"- Metrics: {', '.join(plan.metrics) or 'none'}\n"
            f"- Dimensions: {', '.join(plan.dimensions) or 'none'}\n"
            f"- Date Range: {to_json(date_ranges)}\n\n"
            f"GA4 Results:\n{to_json(report)}\n\n"
            "Provide a clear, concise explanation that:\n"
            "1. Leads with the direct answer to the user's question\n"
            "2. Highlights key findings and trends\n"
            "3. Mentions if data is empty or sparse\n"
            "4. Uses natural language (avoid technical jargon)\n\n"
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
