"""
Advisory AI service.

Wraps an LLM client so generative suggestions can never block the request
that asked for them: when no client is configured, or the call fails for
any reason, ``ask`` returns None and the caller falls back to its
deterministic path.
"""

from __future__ import annotations

from artisanhub.adapters.llm import LLMClient, get_llm_client
from artisanhub.api.metrics import observe_llm_duration, record_ai_event
from artisanhub.config import (
    ANTHROPIC_API_KEY,
    GEMINI_API_KEY,
    LLM_PROVIDER,
    OPENAI_API_KEY,
    PROVIDER_ANTHROPIC,
    PROVIDER_GEMINI,
    PROVIDER_OPENAI,
    get_logger,
)
from artisanhub.utils import timed_operation

logger = get_logger(__name__)

_PROVIDER_KEYS = {
    PROVIDER_GEMINI: GEMINI_API_KEY,
    PROVIDER_ANTHROPIC: ANTHROPIC_API_KEY,
    PROVIDER_OPENAI: OPENAI_API_KEY,
}


class Advisor:
    """Null-on-failure facade over an optional LLM client."""

    def __init__(self, client: LLMClient | None = None):
        self.client = client
        self.model = getattr(client, "model", None)

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def ask(self, system: str, user: str) -> str | None:
        """
        Ask the model for advisory text.

        Returns:
            The stripped reply, or None when AI is disabled, the reply is
            empty, or the client raised.
        """
        if self.client is None:
            record_ai_event("disabled")
            return None

        try:
            with timed_operation("AI suggestion", logger, observe_llm_duration):
                text, tokens = self.client.generate(system=system, user=user)
        except Exception as e:
            logger.warning("AI suggestion failed (%s): %s", type(e).__name__, e)
            record_ai_event("failed")
            return None

        record_ai_event("ok")
        logger.debug("AI suggestion used %d tokens", tokens)
        text = (text or "").strip()
        return text or None


def build_advisor(provider: str | None = None) -> Advisor:
    """
    Build an Advisor for the configured provider.

    Missing API keys or SDKs disable AI instead of failing startup.
    """
    provider = provider.lower().strip() if provider else LLM_PROVIDER
    if not _PROVIDER_KEYS.get(provider):
        logger.warning("No API key for LLM provider %r; AI suggestions disabled", provider)
        return Advisor(None)

    try:
        client = get_llm_client(provider)
    except (ImportError, ValueError) as e:
        logger.warning("LLM client unavailable, AI suggestions disabled: %s", e)
        return Advisor(None)

    logger.info("AI suggestions enabled: %s (%s)", provider, client.model)
    return Advisor(client)
