"""Structured LLM client — prompt in, validated JSON model out."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from pydantic import BaseModel

from tempo.core.llm.provider import LLMProvider, ProviderResponse
from tempo.core.llm.response import (
    check_guardrails,
    collect_strings,
    extract_json_object,
    sanitize_strings,
    validate_structure,
)
from tempo.core.llm.system_prompt import build_full_system_prompt

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class StructuredResponse(Generic[ModelT]):
    """Validated response from the advisor LLM."""

    data: ModelT
    model: str
    guardrail_flags: list[str] = field(default_factory=list)
    usage: dict[str, int] = field(default_factory=dict)
    latency_ms: float = 0.0


class StructuredLLMClient:
    """Invokes the advisor LLM and validates its JSON answer against a schema."""

    def __init__(self, provider: LLMProvider) -> None:
        self.provider = provider

    async def invoke(
        self,
        user_message: str,
        schema: type[ModelT],
        system_instructions: str = "",
        max_tokens: int = 4000,
        temperature: float = 0.3,
    ) -> StructuredResponse[ModelT]:
        """Call the provider and return the parsed, sanitized, validated model.

        Raises:
            AIServiceError: on provider failure, unparseable JSON
                (INVALID_JSON_RESPONSE) or schema mismatch
                (INVALID_AI_RESPONSE_STRUCTURE).
        """
        provider_response: ProviderResponse = await self.provider.generate(
            system_message=build_full_system_prompt(system_instructions),
            user_message=user_message,
            max_tokens=max_tokens,
            temperature=temperature,
        )

        logger.info(
            "AI analysis call: model=%s, tokens=%d+%d, latency=%.0fms",
            provider_response.model,
            provider_response.input_tokens,
            provider_response.output_tokens,
            provider_response.latency_ms,
        )

        raw = extract_json_object(provider_response.content)

        guardrail_check = check_guardrails(collect_strings(raw))
        if guardrail_check.flags:
            raw = sanitize_strings(raw, guardrail_check)
            if not guardrail_check.passed:
                logger.warning(
                    "Guardrails enforced on AI response: %d prohibited patterns redacted",
                    len([f for f in guardrail_check.flags if "prohibited" in f]),
                )

        data = validate_structure(raw, schema)

        return StructuredResponse(
            data=data,
            model=provider_response.model,
            guardrail_flags=guardrail_check.flags,
            usage={
                "input_tokens": provider_response.input_tokens,
                "output_tokens": provider_response.output_tokens,
            },
            latency_ms=provider_response.latency_ms,
        )
