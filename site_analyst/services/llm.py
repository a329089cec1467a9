# =============================================================================
# Multi-Provider LLM Abstraction + Retrying Gateway
# =============================================================================
#
# Provides a common interface for LLM completions, with concrete
# implementations for OpenAI-compatible APIs (a LiteLLM proxy in the
# default deployment) and Anthropic (Claude).
#
# Agents never talk to a provider directly. They call LLMGateway.chat(),
# which takes an OpenAI-style message list (system messages included),
# returns the generated text, and owns the retry policy:
#
#   attempt 0 ──fail──▶ sleep 1s ──▶ attempt 1 ──fail──▶ sleep 2s ──▶ attempt 2
#
# Rate-limit responses always back off (even after the last attempt);
# other failures back off only while attempts remain. When attempts run
# out the gateway raises GatewayExhaustedError carrying the last cause.
#
# DESIGN DECISION: SDK-level retries are disabled (max_retries=0) so the
# attempt count and backoff schedule are exactly the gateway's.
#
# ARCHITECTURE:
#   LLMProvider (Protocol)
#   ├── OpenAICompatibleProvider — LiteLLM / any OpenAI-protocol API
#   ├── AnthropicProvider        — Claude via native Anthropic SDK
#   ├── get_llm_provider()       — factory, reads from Settings
#   └── LLMGateway               — retry/backoff, system-message split
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from site_analyst.config import Settings
from site_analyst.errors import GatewayExhaustedError, LLMRateLimitError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class LLMResponse:
    """
    Standardised response from any LLM provider.

    Normalises the different response formats (Anthropic vs OpenAI)
    into a single structure that downstream code can consume.
    """

    content: str           # The generated text
    model: str             # Model identifier (e.g., "gemini-2.5-flash")
    input_tokens: int      # Tokens consumed by the prompt
    output_tokens: int     # Tokens generated in the response


# ---------------------------------------------------------------------------
# Protocol Definition
# ---------------------------------------------------------------------------


class LLMProvider(Protocol):
    """
    Protocol defining the LLM provider interface.

    Implementations raise LLMRateLimitError for rate-limit responses and
    let every other SDK error propagate unchanged.
    """

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        model: str | None = None,
    ) -> LLMResponse:
        """
        Generate a completion from the LLM.

        Args:
            messages: Conversation messages as dicts with "role" and "content".
                Roles: "user", "assistant" (no "system" — use the system param).
            system: System prompt for the LLM. Handled differently per provider:
                - Anthropic: top-level `system=` kwarg
                - OpenAI: prepended as {"role": "system", ...} message
            temperature: Override sampling temperature (default from config).
            max_tokens: Override max output tokens (default from config).
            model: Override the configured model for this call.

        Returns:
            LLMResponse with generated text and usage metrics.
        """
        ...


# ---------------------------------------------------------------------------
# Implementation 1: OpenAI-Compatible (LiteLLM proxy, OpenAI, DeepSeek, ...)
# ---------------------------------------------------------------------------


class OpenAICompatibleProvider:
    """
    OpenAI-compatible provider for any API that speaks the OpenAI chat protocol.

    A LiteLLM proxy exposes `/chat/completions` for Gemini, Claude and
    others, so pointing `base_url` at the proxy is all that is needed:
        LLM_PROVIDER=openai_compatible
        LLM_BASE_URL=http://litellm.internal:4000
        LITELLM_API_KEY=your-key
        LLM_MODEL=gemini-2.5-flash
    """

    def __init__(
        self,
        settings: Settings,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
    ) -> None:
        from openai import AsyncOpenAI

        resolved_key = api_key or settings.llm_api_key or settings.openai_api_key
        if not resolved_key:
            # The proxy may be reachable without a key in local setups;
            # calls that need one will fail per-query through the gateway.
            logger.warning("LLM API key not set. LLM calls will likely fail.")

        client_kwargs: dict = {"api_key": resolved_key or "unset", "max_retries": 0}
        resolved_base_url = base_url or settings.llm_base_url
        if resolved_base_url:
            client_kwargs["base_url"] = resolved_base_url

        self._client = AsyncOpenAI(**client_kwargs)
        self._model = model or settings.llm_model
        self._temperature = settings.llm_temperature
        self._max_tokens = settings.llm_max_tokens

        logger.info(
            "Initialized OpenAICompatibleProvider (model=%s, base_url=%s)",
            self._model,
            resolved_base_url or "https://api.openai.com/v1",
        )

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        model: str | None = None,
    ) -> LLMResponse:
        """Generate a completion using an OpenAI-compatible API."""
        from openai import RateLimitError

        # OpenAI: system prompt goes as the first message
        all_messages: list[dict[str, str]] = []
        if system:
            all_messages.append({"role": "system", "content": system})
        all_messages.extend(messages)

        try:
            response = await self._client.chat.completions.create(
                model=model or self._model,
                messages=all_messages,
                max_tokens=max_tokens if max_tokens is not None else self._max_tokens,
                temperature=(
                    temperature if temperature is not None else self._temperature
                ),
            )
        except RateLimitError as e:
            raise LLMRateLimitError(str(e)) from e

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""

        usage = response.usage
        return LLMResponse(
            content=content,
            model=response.model or model or self._model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )


# ---------------------------------------------------------------------------
# Implementation 2: Anthropic (Claude)
# ---------------------------------------------------------------------------


class AnthropicProvider:
    """
    Anthropic Claude provider using the native SDK.

    KEY API DIFFERENCE: Anthropic takes system prompts as a top-level
    `system=` kwarg, NOT as a message with role "system".
    """

    def __init__(
        self,
        settings: Settings,
        api_key: str | None = None,
        model: str | None = None,
    ) -> None:
        from anthropic import AsyncAnthropic

        resolved_key = api_key or settings.llm_api_key or settings.anthropic_api_key
        if not resolved_key:
            raise ValueError(
                "No Anthropic API key configured. Set LLM_API_KEY or "
                "ANTHROPIC_API_KEY in .env"
            )

        self._client = AsyncAnthropic(api_key=resolved_key, max_retries=0)
        self._model = model or settings.llm_model
        self._temperature = settings.llm_temperature
        self._max_tokens = settings.llm_max_tokens

        logger.info("Initialized AnthropicProvider (model=%s)", self._model)

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        model: str | None = None,
    ) -> LLMResponse:
        """Generate a completion using Claude."""
        from anthropic import RateLimitError

        kwargs: dict = {
            "model": model or self._model,
            "messages": messages,
            "max_tokens": max_tokens if max_tokens is not None else self._max_tokens,
            "temperature": (
                temperature if temperature is not None else self._temperature
            ),
        }
        if system:
            kwargs["system"] = system

        try:
            response = await self._client.messages.create(**kwargs)
        except RateLimitError as e:
            raise LLMRateLimitError(str(e)) from e

        content = ""
        for block in response.content:
            if block.type == "text":
                content = block.text
                break

        return LLMResponse(
            content=content,
            model=response.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------


def get_llm_provider(settings: Settings) -> LLMProvider:
    """
    Build the provider named by `settings.llm_provider`.

    - "openai_compatible" → OpenAICompatibleProvider (LiteLLM, OpenAI, ...)
    - "anthropic" → AnthropicProvider (Claude)

    Raises:
        ValueError: Unknown provider type, or missing Anthropic key.
    """
    if settings.llm_provider == "openai_compatible":
        return OpenAICompatibleProvider(settings)
    if settings.llm_provider == "anthropic":
        return AnthropicProvider(settings)
    raise ValueError(
        f"Unknown LLM provider '{settings.llm_provider}'. "
        "Supported types: ['anthropic', 'openai_compatible']"
    )


# ---------------------------------------------------------------------------
# Gateway — the only LLM entry point used by agents
# ---------------------------------------------------------------------------


class LLMGateway:
    """
    Resilient chat interface over an LLMProvider.

    Args:
        provider: Concrete provider (or a test double with `complete()`).
        model: Default model name for calls that don't pass one.
        max_attempts: Total attempts before giving up.
        initial_backoff: Seconds to wait after the first failure; doubles
            on every subsequent attempt.
    """

    def __init__(
        self,
        provider: LLMProvider,
        model: str | None = None,
        max_attempts: int = 3,
        initial_backoff: float = 1.0,
    ) -> None:
        self._provider = provider
        self._model = model
        self._max_attempts = max_attempts
        self._initial_backoff = initial_backoff

    async def chat(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """
        Send an ordered chat transcript and return the generated text.

        Raises:
            GatewayExhaustedError: Every attempt failed. The message embeds
                the attempt count and the last underlying error.
        """
        system, conversation = _split_system(messages)
        last_error: Exception | None = None

        for attempt in range(self._max_attempts):
            backoff = self._initial_backoff * (2 ** attempt)
            try:
                response = await self._provider.complete(
                    messages=conversation,
                    system=system,
                    temperature=temperature,
                    max_tokens=max_tokens,
                    model=model or self._model,
                )
                return response.content
            except LLMRateLimitError as e:
                last_error = e
                logger.warning(
                    "Rate limited. Retrying in %.1fs (attempt %d/%d)",
                    backoff, attempt + 1, self._max_attempts,
                )
                await asyncio.sleep(backoff)
            except Exception as e:
                last_error = e
                if attempt < self._max_attempts - 1:
                    logger.warning(
                        "LLM error: %s. Retrying in %.1fs (attempt %d/%d)",
                        e, backoff, attempt + 1, self._max_attempts,
                    )
                    await asyncio.sleep(backoff)

        raise GatewayExhaustedError(
            f"LLM gateway failed after {self._max_attempts} attempts: {last_error}",
            attempts=self._max_attempts,
        )


def _split_system(
    messages: list[dict[str, str]],
) -> tuple[str | None, list[dict[str, str]]]:
    """Pull system messages out of the transcript (providers take them apart)."""
    system_parts = [m["content"] for m in messages if m["role"] == "system"]
    conversation = [m for m in messages if m["role"] != "system"]
    system = "\n\n".join(system_parts) if system_parts else None
    return system, conversation
