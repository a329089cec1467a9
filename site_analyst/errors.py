# =============================================================================
# Error Taxonomy
# =============================================================================
#
# Every per-query failure raised inside the core is one of these. Agents
# catch them (and anything else) at their boundary and turn them into a
# failed AgentResult; none of them is meant to reach an HTTP handler.
#
#   SiteAnalystError
#   ├── PlanInferenceError        — model reply had no decodable plan
#   ├── PlanValidationError       — plan names a field outside the allowlist
#   ├── MissingConfigurationError — required identifier absent
#   ├── ExternalFetchError        — GA4 / Sheets call failed
#   ├── LLMRateLimitError         — provider answered 429 (retried by gateway)
#   └── GatewayExhaustedError     — LLM calls failed after every attempt
# =============================================================================

from __future__ import annotations

from collections.abc import Iterable


class SiteAnalystError(Exception):
    """Base class for all per-query errors."""


class PlanInferenceError(SiteAnalystError):
    """The language model did not return a parseable reporting plan."""


class PlanValidationError(SiteAnalystError):
    """A reporting plan references a field outside the allowlist."""

    def __init__(self, kind: str, field: str, allowed: Iterable[str]) -> None:
        self.kind = kind
        self.field = field
        self.allowed = tuple(allowed)
        super().__init__(
            f"Invalid {kind}: {field}. Must be one of: {', '.join(self.allowed)}"
        )


class MissingConfigurationError(SiteAnalystError):
    """A required identifier was neither supplied nor configured."""


class ExternalFetchError(SiteAnalystError):
    """A data-provider call failed (network, auth, quota, bad request)."""


class LLMRateLimitError(SiteAnalystError):
    """The LLM provider rejected the call with a rate-limit response."""


class GatewayExhaustedError(SiteAnalystError):
    """The LLM gateway gave up after its final attempt."""

    def __init__(self, message: str, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(message)
