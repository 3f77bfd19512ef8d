"""OpenAI GPT provider."""

from __future__ import annotations

import time

from tempo.core.errors import AIServiceError
from tempo.core.llm.provider import ProviderResponse, require_api_key


class OpenAIProvider:
    """OpenAI provider using the OpenAI SDK."""

    service = "openai"

    def __init__(self, api_key: str, model: str = "gpt-4o") -> None:
        import openai

        self._api_key = api_key
        self.client = openai.AsyncOpenAI(api_key=api_key)
        self.model = model

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 4000,
        temperature: float = 0.3,
    ) -> ProviderResponse:
        import openai

        require_api_key(self._api_key, self.service)

        start = time.monotonic()
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": system_message},
                    {"role": "user", "content": user_message},
                ],
            )
        except openai.AuthenticationError as exc:
            raise AIServiceError(
                "Invalid OpenAI API key",
                code="INVALID_API_KEY",
                status_code=401,
                service=self.service,
            ) from exc
        except openai.RateLimitError as exc:
            raise AIServiceError(
                "OpenAI API rate limit exceeded",
                code="RATE_LIMIT_EXCEEDED",
                status_code=429,
                service=self.service,
            ) from exc
        except openai.APIError as exc:
            raise AIServiceError(
                f"OpenAI API request failed: {exc}", service=self.service
            ) from exc
        elapsed_ms = (time.monotonic() - start) * 1000

        choice = response.choices[0] if response.choices else None
        content = choice.message.content or "" if choice else ""
        usage = response.usage
        return ProviderResponse(
            content=content,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            model=self.model,
            latency_ms=elapsed_ms,
        )
