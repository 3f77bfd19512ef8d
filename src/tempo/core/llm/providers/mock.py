"""Mock LLM provider for testing and key-less local runs."""

from __future__ import annotations

import json

from tempo.core.llm.provider import ProviderResponse

# A schema-valid analysis so the full hybrid path works without an API key.
DEFAULT_MOCK_ANALYSIS = {
    "headline": {
        "title": "Steady energy today",
        "subtitle": "Sleep and recovery signals look balanced",
        "impactLevel": "low",
        "confidence": 70,
    },
    "energyComment": "Your energy is holding steady. Keep a comfortable pace through the day.",
    "tagInsights": [],
    "aiActionSuggestions": [
        {
            "title": "Take a short walk",
            "description": "A ten minute walk after lunch keeps energy even.",
            "actionType": "exercise",
            "estimatedTime": "10 min",
            "difficulty": "easy",
        }
    ],
    "detailAnalysis": "Mock analysis generated without contacting an AI provider.",
    "dataQuality": {
        "healthDataCompleteness": 100,
        "weatherDataAge": 0,
        "analysisTimestamp": "1970-01-01T00:00:00+00:00",
    },
    "generatedAt": "1970-01-01T00:00:00+00:00",
}


class MockProvider:
    """Mock provider — returns canned content, optionally raising instead."""

    def __init__(
        self,
        response_content: str | None = None,
        error: Exception | None = None,
    ) -> None:
        self.response_content = (
            response_content if response_content is not None else json.dumps(DEFAULT_MOCK_ANALYSIS)
        )
        self.error = error
        self.last_system_message: str = ""
        self.last_user_message: str = ""
        self.call_count: int = 0

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 4000,
        temperature: float = 0.3,
    ) -> ProviderResponse:
        self.last_system_message = system_message
        self.last_user_message = user_message
        self.call_count += 1
        if self.error is not None:
            raise self.error
        return ProviderResponse(
            content=self.response_content,
            input_tokens=len(system_message.split()) + len(user_message.split()),
            output_tokens=len(self.response_content.split()),
            model="mock",
            latency_ms=0.0,
        )
