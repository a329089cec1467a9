# =============================================================================
# LangGraph Orchestrator — Intent Routing + Multi-Agent Aggregation
# =============================================================================
#
# GRAPH TOPOLOGY:
#
#                    ┌──▶ analytics ───────────────▶ END
#   START ──▶ classify ──▶ seo ─────────────────────▶ END
#                    └──▶ both ──▶ aggregate ───────▶ END
#
# - classify:  IntentClassifier (LLM + deterministic fallback)
# - analytics: GA4 agent; short-circuits without a propertyId
# - seo:       Sheets agent; runs with or without a propertyId
# - both:      both agents concurrently (asyncio.gather); a missing
#              propertyId becomes a failed analytics result, the SEO leg
#              still runs
# - aggregate: one LLM call merges both explanations; success = AND
#
# process_query() wraps the graph in a safety net: anything that escapes
# a node (e.g. the gateway exhausting its retries during classification)
# becomes a failed OrchestratorResponse with intent "unknown".
#
# DESIGN DECISION: Graph compiled once per Orchestrator instance. Nodes
# are bound methods so they reach the injected agents without globals.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from langgraph.graph import END, START, StateGraph
from typing_extensions import TypedDict

from site_analyst.agents.analytics import AnalyticsAgent
from site_analyst.agents.base import EXPLAINER_TEMPERATURE, AgentResult, ChatGateway
from site_analyst.agents.classifier import IntentClassifier
from site_analyst.agents.seo import SEOAgent
from site_analyst.config import Settings

logger = logging.getLogger(__name__)

AGENTS_BY_INTENT: dict[str, list[str]] = {
    "analytics": ["analytics"],
    "seo": ["seo"],
    "both": ["analytics", "seo"],
}

MISSING_PROPERTY_RESULT = AgentResult(
    success=False,
    explanation="No propertyId provided",
    error="Missing propertyId",
)


# ---------------------------------------------------------------------------
# Query / Response
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Query:
    """An inbound question plus optional data-source identifiers."""

    question: str
    property_id: str | None = None
    spreadsheet_id: str | None = None


@dataclass(frozen=True)
class ResponseMetadata:
    intent: str
    agents_used: list[str] = field(default_factory=list)
    processing_time_ms: int = 0


@dataclass(frozen=True)
class OrchestratorResponse:
    """Terminal artifact of one query."""

    success: bool
    response: str
    metadata: ResponseMetadata
    data: Any = None
    error: str | None = None


# ---------------------------------------------------------------------------
# Graph State
# ---------------------------------------------------------------------------


class OrchestratorState(TypedDict, total=False):
    """
    State that flows through the graph.

    Uses total=False so nodes only return the keys they update.
    """

    # --- Input ---
    question: str
    property_id: str | None
    spreadsheet_id: str | None

    # --- Intermediate ---
    intent: str
    analytics_result: AgentResult
    seo_result: AgentResult

    # --- Output ---
    success: bool
    response: str
    data: Any
    error: str | None


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class Orchestrator:
    """Routes a query to the right agent(s) and shapes the final answer."""

    def __init__(
        self,
        gateway: ChatGateway,
        classifier: IntentClassifier,
        analytics_agent: AnalyticsAgent,
        seo_agent: SEOAgent,
    ) -> None:
        self._gateway = gateway
        self._classifier = classifier
        self._analytics = analytics_agent
        self._seo = seo_agent
        self._graph = self._build_graph()
        logger.info("Orchestrator initialized")

    async def process_query(self, query: Query) -> OrchestratorResponse:
        """
        Answer one query. Always returns; never raises.
        """
        start = time.monotonic()
        logger.info('Processing query: "%s"', query.question[:120])

        try:
            state = await self._graph.ainvoke(
                {
                    "question": query.question,
                    "property_id": query.property_id,
                    "spreadsheet_id": query.spreadsheet_id,
                }
            )
        except Exception as e:
            logger.exception("Orchestrator error: %s", e)
            return OrchestratorResponse(
                success=False,
                response=f"Failed to process query: {e}",
                error=str(e),
                metadata=ResponseMetadata(
                    intent="unknown",
                    agents_used=[],
                    processing_time_ms=_elapsed_ms(start),
                ),
            )

        intent = state["intent"]
        response = OrchestratorResponse(
            success=state["success"],
            response=state["response"],
            data=state.get("data"),
            error=state.get("error"),
            metadata=ResponseMetadata(
                intent=intent,
                agents_used=list(AGENTS_BY_INTENT[intent]),
                processing_time_ms=_elapsed_ms(start),
            ),
        )
        logger.info(
            "Query complete: intent=%s success=%s (%d ms)",
            intent, response.success, response.metadata.processing_time_ms,
        )
        return response

    # -----------------------------------------------------------------------
    # Graph Assembly
    # -----------------------------------------------------------------------

    def _build_graph(self):
        builder = StateGraph(OrchestratorState)
        builder.add_node("classify", self._classify_node)
        builder.add_node("analytics", self._analytics_node)
        builder.add_node("seo", self._seo_node)
        builder.add_node("both", self._both_node)
        builder.add_node("aggregate", self._aggregate_node)

        builder.add_edge(START, "classify")
        builder.add_conditional_edges(
            "classify",
            lambda state: state["intent"],
            {"analytics": "analytics", "seo": "seo", "both": "both"},
        )
        builder.add_edge("analytics", END)
        builder.add_edge("seo", END)
        builder.add_edge("both", "aggregate")
        builder.add_edge("aggregate", END)
        return builder.compile()

    # -----------------------------------------------------------------------
    # Node Functions
    # -----------------------------------------------------------------------

    async def _classify_node(self, state: OrchestratorState) -> dict:
        intent = await self._classifier.classify(
            state["question"], has_property_id=bool(state.get("property_id")),
        )
        logger.info("Detected intent: %s", intent)
        return {"intent": intent}

    async def _analytics_node(self, state: OrchestratorState) -> dict:
        property_id = state.get("property_id")
        if not property_id:
            return {
                "success": False,
                "response": (
                    "Analytics queries require a propertyId. Please provide a "
                    "GA4 property ID in your request."
                ),
                "error": "Missing propertyId",
            }

        result = await self._analytics.process_query(property_id, state["question"])
        return {"analytics_result": result, **_single_agent_output(result)}

    async def _seo_node(self, state: OrchestratorState) -> dict:
        result = await self._seo.process_query(
            state["question"], state.get("spreadsheet_id"),
        )
        return {"seo_result": result, **_single_agent_output(result)}

    async def _both_node(self, state: OrchestratorState) -> dict:
        property_id = state.get("property_id")
        question = state["question"]

        if property_id:
            analytics_leg = self._analytics.process_query(property_id, question)
        else:
            analytics_leg = _resolved(MISSING_PROPERTY_RESULT)

        analytics_result, seo_result = await asyncio.gather(
            analytics_leg,
            self._seo.process_query(question, state.get("spreadsheet_id")),
            return_exceptions=True,
        )
        return {
            "analytics_result": _as_result(analytics_result, "analytics"),
            "seo_result": _as_result(seo_result, "seo"),
        }

    async def _aggregate_node(self, state: OrchestratorState) -> dict:
        analytics_result = state["analytics_result"]
        seo_result = state["seo_result"]

        answer = await self._aggregate(state["question"], analytics_result, seo_result)

        errors = [
            f"{name}: {r.error}"
            for name, r in (("analytics", analytics_result), ("seo", seo_result))
            if not r.success
        ]
        return {
            "success": analytics_result.success and seo_result.success,
            "response": answer,
            "data": {
                "analytics": analytics_result.data if analytics_result.success else None,
                "seo": seo_result.data,
            },
            "error": "; ".join(errors) or None,
        }

    async def _aggregate(
        self, question: str, analytics: AgentResult, seo: AgentResult,
    ) -> str:
        prompt = (
            "You are a data analyst. Combine insights from both Analytics and "
            "SEO data to answer this question.\n\n"
            f'Question: "{question}"\n\n'
            f"Analytics Results:\n{analytics.explanation}\n\n"
            f"SEO Results:\n{seo.explanation}\n\n"
            "Provide a unified answer that:\n"
            "1. Combines insights from both sources\n"
            "2. Directly answers the user's question\n"
            "3. Highlights correlations or patterns\n"
            "4. Is clear and actionable\n\n"
            "If either source failed or returned no data, say which one and "
            "answer only from what is available. Do not invent figures.\n\n"
            "Keep it under 250 words."
        )
        return await self._gateway.chat(
            [
                {"role": "system", "content": "You are a comprehensive data analyst."},
                {"role": "user", "content": prompt},
            ],
            temperature=EXPLAINER_TEMPERATURE,
        )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_orchestrator(settings: Settings) -> Orchestrator:
    """
    Wire the production orchestrator from settings.

    Raises at startup when credentials or LLM configuration are unusable;
    per-query failures are handled inside the agents.
    """
    from site_analyst.services.ga4 import GA4ReportClient
    from site_analyst.services.llm import LLMGateway, get_llm_provider
    from site_analyst.services.sheets import SheetsTableLoader

    gateway = LLMGateway(
        get_llm_provider(settings),
        model=settings.llm_model,
        max_attempts=settings.llm_max_attempts,
        initial_backoff=settings.llm_initial_backoff_seconds,
    )
    return Orchestrator(
        gateway=gateway,
        classifier=IntentClassifier(gateway, settings.seo_fallback_keywords),
        analytics_agent=AnalyticsAgent(
            gateway, GA4ReportClient(settings.google_credentials_file),
        ),
        seo_agent=SEOAgent(
            gateway,
            SheetsTableLoader(settings.google_credentials_file),
            default_spreadsheet_id=settings.seo_spreadsheet_id,
        ),
    )


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def _single_agent_output(result: AgentResult) -> dict:
    return {
        "success": result.success,
        "response": result.explanation,
        "data": result.data,
        "error": result.error,
    }


async def _resolved(result: AgentResult) -> AgentResult:
    return result


def _as_result(outcome: AgentResult | BaseException, agent: str) -> AgentResult:
    if isinstance(outcome, AgentResult):
        return outcome
    logger.error("%s leg raised: %s", agent, outcome)
    return AgentResult(
        success=False,
        explanation=f"Failed to process {agent} query: {outcome}",
        error=str(outcome),
    )


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
