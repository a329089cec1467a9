# =============================================================================
# Shared Agent Building Blocks
# =============================================================================
#
#   AgentResult       — what every data-source agent returns
#   ChatGateway       — the slice of LLMGateway agents depend on
#   infer_plan()      — prompt → reply → first JSON object → validated plan
#   NO_FABRICATION    — instruction appended to every explanation prompt
# =============================================================================

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from site_analyst.errors import PlanInferenceError

logger = logging.getLogger(__name__)

PlanT = TypeVar("PlanT", bound=BaseModel)

# Greedy on purpose: from the first "{" to the last "}" so nested
# objects survive, including when the model wraps JSON in ```fences```.
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

PLANNER_TEMPERATURE = 0.3
EXPLAINER_TEMPERATURE = 0.7

NO_FABRICATION = (
    "If the results are empty, sparse, or report an error, say so plainly. "
    "Never invent numbers, pages, or findings that are not in the results."
)


@dataclass(frozen=True)
class AgentResult:
    """
    Outcome of one agent run.

    `explanation` is always set: the answer on success, a description of
    what went wrong on failure. `data` and `error` are mutually exclusive
    in practice.
    """

    success: bool
    explanation: str
    data: Any = None
    error: str | None = None


class ChatGateway(Protocol):
    async def chat(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        ...


async def infer_plan(
    gateway: ChatGateway,
    system: str,
    prompt: str,
    plan_type: type[PlanT],
    temperature: float = PLANNER_TEMPERATURE,
) -> PlanT:
    """
    Ask the model for a plan and decode it into `plan_type`.

    Raises:
        PlanInferenceError: No JSON object in the reply, invalid JSON, or
            an object that does not match the plan schema.
    """
    reply = await gateway.chat(
        [
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ],
        temperature=temperature,
    )
    return decode_plan(reply, plan_type)


def decode_plan(reply: str, plan_type: type[PlanT]) -> PlanT:
    """Extract the first JSON object from `reply` and validate it."""
    match = _JSON_OBJECT.search(reply or "")
    if not match:
        raise PlanInferenceError("Failed to parse reporting plan from LLM response")

    try:
        payload = json.loads(match.group())
    except json.JSONDecodeError as e:
        raise PlanInferenceError(f"Reporting plan is not valid JSON: {e}") from e

    try:
        plan = plan_type.model_validate(payload)
    except SchemaError as e:
        raise PlanInferenceError(
            f"Reporting plan has an unexpected shape: "
            f"{e.error_count()} problem(s), first: {e.errors()[0]['msg']}"
        ) from e

    logger.info("Inferred %s: %s", plan_type.__name__, plan.model_dump_json(by_alias=True))
    return plan


def to_json(payload: Any) -> str:
    """Pretty JSON for prompts; tolerates dates and other odd cell types."""
    return json.dumps(payload, indent=2, default=str)
