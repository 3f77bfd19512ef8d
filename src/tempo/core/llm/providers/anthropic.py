"""Anthropic Claude provider."""

from __future__ import annotations

import time

from tempo.core.errors import AIServiceError
from tempo.core.llm.provider import ProviderResponse, require_api_key


class AnthropicProvider:
    """Claude provider using the Anthropic SDK."""

    service = "claude"

    def __init__(self, api_key: str, model: str = "claude-sonnet-4-20250514") -> None:
        import anthropic

        self._api_key = api_key
        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 4000,
        temperature: float = 0.3,
    ) -> ProviderResponse:
        import anthropic

        require_api_key(self._api_key, self.service)

        start = time.monotonic()
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system_message,
                messages=[{"role": "user", "content": user_message}],
            )
        except anthropic.AuthenticationError as exc:
            raise AIServiceError(
                "Invalid Claude API key", code="INVALID_API_KEY", status_code=401
            ) from exc
        except anthropic.RateLimitError as exc:
            raise AIServiceError(
                "Claude API rate limit exceeded", code="RATE_LIMIT_EXCEEDED", status_code=429
            ) from exc
        except anthropic.APIError as exc:
            raise AIServiceError(f"Claude API request failed: {exc}") from exc
        elapsed_ms = (time.monotonic() - start) * 1000

        content = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        return ProviderResponse(
            content=content,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            model=self.model,
            latency_ms=elapsed_ms,
        )
