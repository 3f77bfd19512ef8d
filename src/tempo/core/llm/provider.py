"""LLM provider protocol — abstract interface for AI analysis calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from tempo.core.errors import AIServiceError

# Keys shipped in example .env files; never worth a network round trip.
_PLACEHOLDER_KEYS = {"your_api_key_here", "your-api-key", "changeme"}


@dataclass
class ProviderResponse:
    """Response from an LLM provider."""

    content: str
    input_tokens: int
    output_tokens: int
    model: str
    latency_ms: float


@runtime_checkable
class LLMProvider(Protocol):
    """Abstract interface for AI analysis calls."""

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 4000,
        temperature: float = 0.3,
    ) -> ProviderResponse: ...


def require_api_key(api_key: str, service: str) -> str:
    """Return ``api_key`` or raise MISSING_API_KEY for empty/placeholder keys."""
    key = (api_key or "").strip()
    if not key or key in _PLACEHOLDER_KEYS or key.startswith("test-"):
        raise AIServiceError(
            f"{service} API key is not configured",
            code="MISSING_API_KEY",
            status_code=500,
            service=service,
        )
    return key


def create_provider(
    provider_name: str,
    api_key: str = "",
    model: str = "",
) -> LLMProvider:
    """Factory function to create an LLM provider by name.

    Args:
        provider_name: "anthropic", "openai", or "mock"
        api_key: API key for the provider.
        model: Model identifier override.

    Returns:
        An LLMProvider instance.
    """
    if provider_name == "anthropic":
        from tempo.core.llm.providers.anthropic import AnthropicProvider

        return AnthropicProvider(api_key=api_key, model=model or "claude-sonnet-4-20250514")
    elif provider_name == "openai":
        from tempo.core.llm.providers.openai import OpenAIProvider

        return OpenAIProvider(api_key=api_key, model=model or "gpt-4o")
    elif provider_name == "mock":
        from tempo.core.llm.providers.mock import MockProvider

        return MockProvider()
    else:
        raise ValueError(f"Unknown LLM provider: {provider_name}")
