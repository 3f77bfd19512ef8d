"""Unit tests for the AI analysis service, fallback response and cost model."""

from __future__ import annotations

import asyncio
import copy
import json

import pytest

from tempo.core.errors import AIServiceError
from tempo.core.llm.client import StructuredLLMClient
from tempo.core.llm.providers.mock import DEFAULT_MOCK_ANALYSIS, MockProvider
from tempo.domains.wellness.ai_analysis import (
    AIAnalysisService,
    check_quality,
    estimate_cost,
    fallback_response,
    refresh_timestamps,
)
from tempo.domains.wellness.domain_logic.ai_models import AIAnalysisResponse


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _service(provider, registry) -> AIAnalysisService:
    return AIAnalysisService(StructuredLLMClient(provider), registry)


def _mock_payload(**overrides) -> dict:
    payload = copy.deepcopy(DEFAULT_MOCK_ANALYSIS)
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestEstimateCost:
    def test_one_tag(self, analysis_request):
        assert estimate_cost(analysis_request) == pytest.approx(0.0375)

    def test_cost_grows_with_tags(self, make_request):
        assert estimate_cost(make_request(tags=[])) == pytest.approx(0.0345)
        assert estimate_cost(make_request(tags=["work", "sleep", "diet"])) == pytest.approx(0.0435)


def test_refresh_timestamps():
    payload = {"generatedAt": "old", "dataQuality": {"analysisTimestamp": "old"}}
    refreshed = refresh_timestamps(payload, 1_750_000_000.0)
    assert refreshed["generatedAt"] == "2025-06-15T15:06:40+00:00"
    assert refreshed["dataQuality"]["analysisTimestamp"] == "2025-06-15T15:06:40+00:00"


def test_refresh_timestamps_without_data_quality():
    assert refresh_timestamps({}, 0.0) == {"generatedAt": "1970-01-01T00:00:00+00:00"}


class TestCheckQuality:
    def test_mock_analysis_passes(self):
        assert check_quality(AIAnalysisResponse.model_validate(DEFAULT_MOCK_ANALYSIS)) == []

    def test_thin_answer(self):
        response = AIAnalysisResponse.model_validate(
            _mock_payload(
                headline={"title": "ok", "subtitle": "", "impactLevel": "low", "confidence": 50},
                energyComment="fine",
            )
        )
        assert check_quality(response) == ["headline title too short", "energy comment too short"]


# ---------------------------------------------------------------------------
# Fallback
# ---------------------------------------------------------------------------

class TestFallbackResponse:
    def test_high_energy(self, make_request, focus_registry):
        response = fallback_response(make_request(battery_level=80, language="en"), focus_registry)
        assert response.headline.title == "Energy full"
        assert response.headline.impact_level == "low"
        assert response.headline.confidence == 50
        assert response.ai_action_suggestions == []

    def test_low_energy_dry_air(self, make_request):
        response = fallback_response(make_request(battery_level=30, humidity=30, language="en"))
        assert response.headline.title == "Energy dropping"
        assert response.headline.impact_level == "medium"
        assert [s.action_type for s in response.ai_action_suggestions] == ["rest", "hydrate"]

    def test_critical(self, make_request):
        response = fallback_response(make_request(battery_level=10))
        assert response.headline.title == "要注意"
        assert response.headline.impact_level == "high"

    def test_tag_insights_use_registry_icons(self, make_request, focus_registry):
        response = fallback_response(make_request(tags=["work", "sleep"]), focus_registry)
        assert [(i.tag, i.icon) for i in response.tag_insights] == [
            ("work", "square.stack.3d.up"),
            ("sleep", "bed.double.circle"),
        ]

    def test_data_quality(self, analysis_request):
        response = fallback_response(analysis_request)
        assert response.data_quality.health_data_completeness == 83.3
        assert response.generated_at is not None


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class TestAIAnalysisService:
    def test_mock_analysis(self, analysis_request, focus_registry):
        provider = MockProvider()
        response = _run(_service(provider, focus_registry).analyze(analysis_request))

        assert response.headline.title == "Steady energy today"
        assert provider.call_count == 1
        assert "## 必須データ" in provider.last_user_message
        assert "JSON" in provider.last_system_message

    def test_fills_missing_fields(self, analysis_request, focus_registry):
        payload = _mock_payload(
            tagInsights=[{"tag": "work", "message": "Block your deep work before noon."}],
            aiActionSuggestions=[DEFAULT_MOCK_ANALYSIS["aiActionSuggestions"][0]] * 5,
        )
        del payload["dataQuality"]
        del payload["generatedAt"]
        provider = MockProvider(response_content=json.dumps(payload))

        response = _run(
            _service(provider, focus_registry).analyze(analysis_request, weather_data_age=12.5)
        )

        assert response.tag_insights[0].icon == "square.stack.3d.up"
        assert len(response.ai_action_suggestions) == 3
        assert response.data_quality.health_data_completeness == 83.3
        assert response.data_quality.weather_data_age == 12.5
        assert response.generated_at is not None

    def test_quality_failure(self, analysis_request, focus_registry):
        provider = MockProvider(response_content=json.dumps(_mock_payload(energyComment="ok")))
        with pytest.raises(AIServiceError) as exc_info:
            _run(_service(provider, focus_registry).analyze(analysis_request))
        assert exc_info.value.code == "INVALID_RESPONSE_QUALITY"

    def test_non_json(self, analysis_request, focus_registry):
        provider = MockProvider(response_content="I cannot help with that.")
        with pytest.raises(AIServiceError) as exc_info:
            _run(_service(provider, focus_registry).analyze(analysis_request))
        assert exc_info.value.code == "INVALID_JSON_RESPONSE"

    def test_missing_headline(self, analysis_request, focus_registry):
        payload = _mock_payload()
        del payload["headline"]
        provider = MockProvider(response_content=json.dumps(payload))
        with pytest.raises(AIServiceError) as exc_info:
            _run(_service(provider, focus_registry).analyze(analysis_request))
        assert exc_info.value.code == "INVALID_AI_RESPONSE_STRUCTURE"
