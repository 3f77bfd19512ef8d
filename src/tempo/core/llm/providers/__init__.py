"""LLM provider implementations."""

from tempo.core.llm.providers.anthropic import AnthropicProvider
from tempo.core.llm.providers.mock import MockProvider
from tempo.core.llm.providers.openai import OpenAIProvider

__all__ = ["AnthropicProvider", "MockProvider", "OpenAIProvider"]
