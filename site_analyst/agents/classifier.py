# =============================================================================
# Intent Classifier — which agent(s) should answer a query
# =============================================================================
#
# One low-temperature LLM call returns "analytics", "seo" or "both".
# Anything else falls back to a fixed rule set that never raises:
#
#   1. propertyId present            → analytics
#   2. question has an SEO keyword   → seo
#   3. otherwise                     → analytics
#
# Gateway failures (exhausted retries) are NOT covered by the fallback;
# they propagate to the orchestrator's safety net.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Literal, get_args

from site_analyst.agents.base import ChatGateway

logger = logging.getLogger(__name__)

Intent = Literal["analytics", "seo", "both"]

INTENTS: tuple[str, ...] = get_args(Intent)

DEFAULT_SEO_KEYWORDS: tuple[str, ...] = ("seo", "title", "meta")

CLASSIFIER_TEMPERATURE = 0.2

_SYSTEM = "You are an intent classifier. Return only: analytics, seo, or both"


class IntentClassifier:
    """
    LLM-backed router with a deterministic fallback.

    Args:
        gateway: LLM gateway.
        seo_keywords: Lower-case keywords that route to "seo" when the
            model reply is unusable and no property id was given.
    """

    def __init__(
        self,
        gateway: ChatGateway,
        seo_keywords: Iterable[str] = DEFAULT_SEO_KEYWORDS,
    ) -> None:
        self._gateway = gateway
        self._seo_keywords = tuple(k.lower() for k in seo_keywords)

    async def classify(self, question: str, has_property_id: bool) -> Intent:
        prompt = (
            "You are an intent classifier. Determine if this question is about:\n"
            '- "analytics": Google Analytics, GA4, website traffic, user '
            "behavior, page views, sessions\n"
            '- "seo": SEO audit, Screaming Frog, URLs, indexability, meta tags, '
            "title tags, HTTPS\n"
            '- "both": Requires both analytics AND SEO data (e.g., "top pages by '
            'views with their title tags")\n\n'
            f'Question: "{question}"\n'
            f"Has GA4 Property ID: {str(has_property_id).lower()}\n\n"
            "Rules:\n"
            "- If the question mentions specific metrics (page views, users, "
            'sessions), it\'s "analytics"\n'
            "- If it mentions SEO elements (title tags, meta descriptions, "
            'indexability), it\'s "seo"\n'
            '- If it requires combining both types of data, it\'s "both"\n'
            "- If propertyId is provided and question is about analytics, "
            'it\'s "analytics"\n\n'
            'Return ONLY one word: "analytics", "seo", or "both"'
        )

        reply = await self._gateway.chat(
            [
                {"role": "system", "content": _SYSTEM},
                {"role": "user", "content": prompt},
            ],
            temperature=CLASSIFIER_TEMPERATURE,
        )

        label = _normalise(reply)
        if label in INTENTS:
            return label  # type: ignore[return-value]

        intent = self.fallback(question, has_property_id)
        logger.warning(
            "Unrecognised classifier reply %r; falling back to %s", reply[:40], intent,
        )
        return intent

    def fallback(self, question: str, has_property_id: bool) -> Intent:
        if has_property_id:
            return "analytics"
        question_lower = question.lower()
        if any(keyword in question_lower for keyword in self._seo_keywords):
            return "seo"
        return "analytics"


def _normalise(reply: str) -> str:
    """'"SEO".' → 'seo'"""
    return (reply or "").strip().strip("\"'`.").strip().lower()
