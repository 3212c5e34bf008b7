"""
LLM client adapters.

Provides a unified interface for generative-language providers
(Google Gemini, Anthropic Claude, OpenAI GPT).

Every client takes an explicit request timeout and translates SDK errors to
built-in exceptions so callers never import provider SDKs:
- TimeoutError: the request exceeded the timeout
- RuntimeError: the provider rate limited us (after backoff retries)
- ConnectionError: the provider could not be reached

Rate limits are retried with exponential backoff and jitter:
- Initial delay: 1 second
- Max delay: 8 seconds
- Jitter: 0-25% random variation
"""

from __future__ import annotations

import random
import time
from abc import ABC, abstractmethod
from functools import wraps
from typing import Any, Callable, NoReturn, Protocol, TypeVar

from artisanhub.config import (
    ANTHROPIC_API_KEY,
    ANTHROPIC_MODEL,
    GEMINI_API_KEY,
    GEMINI_MODEL,
    LLM_MAX_RETRIES,
    LLM_MAX_TOKENS,
    LLM_PROVIDER,
    LLM_TEMPERATURE,
    LLM_TIMEOUT,
    OPENAI_API_KEY,
    OPENAI_MODEL,
    PROVIDER_ANTHROPIC,
    PROVIDER_GEMINI,
    PROVIDER_OPENAI,
    get_logger,
)
from artisanhub.utils import require_import

logger = get_logger(__name__)

T = TypeVar("T")

# Backoff stays short: suggestions are advisory and sit on a request path.
RATE_LIMIT_INITIAL_DELAY = 1.0  # seconds
RATE_LIMIT_MAX_DELAY = 8.0  # seconds
RATE_LIMIT_MAX_RETRIES = 2
RATE_LIMIT_JITTER = 0.25


def _calculate_backoff_delay(attempt: int, jitter: float = RATE_LIMIT_JITTER) -> float:
    """Exponential backoff delay in seconds for a 0-indexed retry attempt."""
    delay = min(RATE_LIMIT_INITIAL_DELAY * (2**attempt), RATE_LIMIT_MAX_DELAY)
    return delay + delay * jitter * random.random()


def with_rate_limit_retry(func: Callable[..., T]) -> Callable[..., T]:
    """Retry a generate method while it raises a translated rate-limit error."""

    @wraps(func)
    def wrapper(self, *args, **kwargs) -> T:
        last_exception: RuntimeError | None = None

        for attempt in range(RATE_LIMIT_MAX_RETRIES + 1):
            try:
                return func(self, *args, **kwargs)
            except RuntimeError as e:
                if "rate limit" not in str(e).lower():
                    raise
                last_exception = e

                if attempt < RATE_LIMIT_MAX_RETRIES:
                    delay = _calculate_backoff_delay(attempt)
                    logger.warning(
                        "Rate limited (attempt %d/%d), backing off %.1fs: %s",
                        attempt + 1,
                        RATE_LIMIT_MAX_RETRIES + 1,
                        delay,
                        e,
                    )
                    time.sleep(delay)

        logger.error(
            "Rate limit persists after %d attempts: %s",
            RATE_LIMIT_MAX_RETRIES + 1,
            last_exception,
        )
        raise last_exception  # type: ignore[misc]

    return wrapper


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class LLMClient(Protocol):
    """
    Protocol for generative-language clients.

    ``model`` names the model in use; ``generate`` returns the reply text
    and the number of tokens consumed.
    """

    model: str

    def generate(self, system: str, user: str) -> tuple[str, int]:
        ...


# ---------------------------------------------------------------------------
# Base class with shared error translation
# ---------------------------------------------------------------------------


class LLMClientBase(ABC):
    """Shared configuration and SDK error translation."""

    model: str
    temperature: float
    max_tokens: int
    timeout: float
    _name: str
    _timeout_errors: tuple[type[Exception], ...] = ()
    _rate_limit_errors: tuple[type[Exception], ...] = ()
    _connection_errors: tuple[type[Exception], ...] = ()

    @property
    def _api_errors(self) -> tuple[type[Exception], ...]:
        return self._timeout_errors + self._rate_limit_errors + self._connection_errors

    def _translate_error(self, exc: Exception) -> NoReturn:
        """Re-raise an SDK error as a built-in exception."""
        if isinstance(exc, self._timeout_errors):
            raise TimeoutError(f"{self._name} API request timed out: {exc}") from exc
        if isinstance(exc, self._rate_limit_errors):
            raise RuntimeError(f"{self._name} API rate limited: {exc}") from exc
        if isinstance(exc, self._connection_errors):
            raise ConnectionError(f"Failed to connect to {self._name} API: {exc}") from exc
        raise exc

    @abstractmethod
    def generate(self, system: str, user: str) -> tuple[str, int]:
        """Generate a reply from the model."""
        ...


# ---------------------------------------------------------------------------
# Gemini Client
# ---------------------------------------------------------------------------


class GeminiClient(LLMClientBase):
    """Google Gemini client via the google-generativeai SDK."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = GEMINI_MODEL,
        temperature: float = LLM_TEMPERATURE,
        max_tokens: int = LLM_MAX_TOKENS,
        timeout: float = LLM_TIMEOUT,
    ):
        """
        Initialize Gemini client.

        Args:
            api_key: Gemini API key. Defaults to GEMINI_API_KEY from config.
            model: Model name. Defaults to GEMINI_MODEL from config.
            temperature: Sampling temperature.
            max_tokens: Maximum output tokens.
            timeout: Request timeout in seconds.

        Raises:
            ImportError: If google-generativeai is not installed.
        """
        genai = require_import("google.generativeai", pip_name="google-generativeai")
        api_exceptions = require_import(
            "google.api_core.exceptions", pip_name="google-api-core"
        )

        genai.configure(api_key=api_key or GEMINI_API_KEY)
        self._genai = genai
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._name = "Gemini"
        self._timeout_errors = (api_exceptions.DeadlineExceeded,)
        self._rate_limit_errors = (api_exceptions.ResourceExhausted,)
        self._connection_errors = (api_exceptions.ServiceUnavailable,)

    @with_rate_limit_retry
    def generate(self, system: str, user: str) -> tuple[str, int]:
        """
        Generate a reply using Gemini.

        Returns:
            Tuple of (generated_text, tokens_used).
        """
        try:
            model = self._genai.GenerativeModel(self.model, system_instruction=system)
            response = model.generate_content(
                user,
                generation_config={
                    "temperature": self.temperature,
                    "max_output_tokens": self.max_tokens,
                },
                request_options={"timeout": self.timeout},
            )
            usage = getattr(response, "usage_metadata", None)
            tokens = usage.total_token_count if usage else 0
            return response.text, tokens
        except self._api_errors as exc:
            self._translate_error(exc)


# ---------------------------------------------------------------------------
# Anthropic Client
# ---------------------------------------------------------------------------


class AnthropicClient(LLMClientBase):
    """Anthropic Claude client."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = ANTHROPIC_MODEL,
        temperature: float = LLM_TEMPERATURE,
        max_tokens: int = LLM_MAX_TOKENS,
        timeout: float = LLM_TIMEOUT,
        max_retries: int = LLM_MAX_RETRIES,
    ):
        anthropic = require_import("anthropic")

        self.client: Any = anthropic.Anthropic(
            api_key=api_key or ANTHROPIC_API_KEY,
            timeout=timeout,
            max_retries=max_retries,
        )
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._name = "Anthropic"
        self._timeout_errors = (anthropic.APITimeoutError,)
        self._rate_limit_errors = (anthropic.RateLimitError,)
        self._connection_errors = (anthropic.APIConnectionError,)

    @with_rate_limit_retry
    def generate(self, system: str, user: str) -> tuple[str, int]:
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=system,
                messages=[{"role": "user", "content": user}],
            )
            text = next(
                (block.text for block in response.content if hasattr(block, "text")),
                "",
            )
            tokens = response.usage.input_tokens + response.usage.output_tokens
            return text, tokens
        except self._api_errors as exc:
            self._translate_error(exc)


# ---------------------------------------------------------------------------
# OpenAI Client
# ---------------------------------------------------------------------------


class OpenAIClient(LLMClientBase):
    """OpenAI chat-completions client."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = OPENAI_MODEL,
        temperature: float = LLM_TEMPERATURE,
        max_tokens: int = LLM_MAX_TOKENS,
        timeout: float = LLM_TIMEOUT,
        max_retries: int = LLM_MAX_RETRIES,
    ):
        openai = require_import("openai")

        self.client: Any = openai.OpenAI(
            api_key=api_key or OPENAI_API_KEY,
            timeout=timeout,
            max_retries=max_retries,
        )
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._name = "OpenAI"
        self._timeout_errors = (openai.APITimeoutError,)
        self._rate_limit_errors = (openai.RateLimitError,)
        self._connection_errors = (openai.APIConnectionError,)

    @with_rate_limit_retry
    def generate(self, system: str, user: str) -> tuple[str, int]:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
            )
            text = response.choices[0].message.content or ""
            tokens = response.usage.total_tokens if response.usage else 0
            return text, tokens
        except self._api_errors as exc:
            self._translate_error(exc)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

_CLIENTS: dict[str, type[LLMClientBase]] = {
    PROVIDER_GEMINI: GeminiClient,
    PROVIDER_ANTHROPIC: AnthropicClient,
    PROVIDER_OPENAI: OpenAIClient,
}


def get_llm_client(provider: str | None = None) -> LLMClient:
    """
    Get the configured LLM client.

    Args:
        provider: "gemini", "anthropic" or "openai". Defaults to LLM_PROVIDER.

    Returns:
        Configured LLM client instance.

    Raises:
        ValueError: If provider is not recognized.
    """
    provider = provider.lower().strip() if provider else LLM_PROVIDER

    client_cls = _CLIENTS.get(provider)
    if client_cls is None:
        raise ValueError(
            f"Unknown LLM provider: {provider}. Use one of: {', '.join(sorted(_CLIENTS))}."
        )
    return client_cls()


__all__ = [
    "LLMClient",
    "LLMClientBase",
    "GeminiClient",
    "AnthropicClient",
    "OpenAIClient",
    "get_llm_client",
    "with_rate_limit_retry",
    "RATE_LIMIT_MAX_RETRIES",
]
