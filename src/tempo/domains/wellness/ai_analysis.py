"""AI analysis service: prompt -> LLM -> validated, quality-checked analysis."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from tempo.core.errors import AIServiceError
from tempo.domains.wellness.domain_logic.ai_models import (
    ActionSuggestion,
    AIAnalysisRequest,
    AIAnalysisResponse,
    DataQuality,
    Headline,
    TagInsight,
)
from tempo.domains.wellness.domain_logic.static_engine import data_completeness
from tempo.domains.wellness.prompts.builder import build_enhanced_prompt

if TYPE_CHECKING:
    from tempo.core.focus.registry import FocusAreaRegistry
    from tempo.core.llm.client import StructuredLLMClient

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3
MIN_TITLE_LENGTH = 3
MIN_ENERGY_COMMENT_LENGTH = 10

# Cost model (USD): per-tag prompt growth, fixed output allowance.
BASE_INPUT_TOKENS = 1500
TOKENS_PER_TAG = 200
OUTPUT_TOKENS = 800
COST_PER_TOKEN = 0.000015


def estimate_cost(request: AIAnalysisRequest) -> float:
    tokens = BASE_INPUT_TOKENS + TOKENS_PER_TAG * len(request.user_context.active_tags) + OUTPUT_TOKENS
    return tokens * COST_PER_TOKEN


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def refresh_timestamps(payload: dict[str, Any], now: float) -> dict[str, Any]:
    """Stamp a cached payload (camelCase dict) as generated at ``now``."""
    stamp = datetime.fromtimestamp(now, tz=timezone.utc).isoformat()
    payload["generatedAt"] = stamp
    quality = payload.get("dataQuality")
    if isinstance(quality, dict):
        quality["analysisTimestamp"] = stamp
    return payload


# ---------------------------------------------------------------------------
# Quality checks
# ---------------------------------------------------------------------------

def check_quality(response: AIAnalysisResponse) -> list[str]:
    """Return quality problems; empty means the response is usable."""
    problems: list[str] = []
    if len(response.headline.title.strip()) < MIN_TITLE_LENGTH:
        problems.append("headline title too short")
    if len(response.energy_comment.strip()) < MIN_ENERGY_COMMENT_LENGTH:
        problems.append("energy comment too short")
    if not 0 <= response.headline.confidence <= 100:
        problems.append("confidence out of range")
    return problems


# ---------------------------------------------------------------------------
# Deterministic fallback
# ---------------------------------------------------------------------------

_FALLBACK_TEXT: dict[str, dict[str, str]] = {
    "ja": {
        "full_title": "エネルギー満タン",
        "full_subtitle": "新しいことに挑戦するのに最適な状態です",
        "full_comment": "エネルギーが十分にあります。この調子で充実した一日を過ごしましょう。",
        "balanced_title": "バランスの取れた状態",
        "balanced_subtitle": "自分のペースを保って過ごしましょう",
        "balanced_comment": "エネルギーは安定しています。無理のない範囲で活動しましょう。",
        "dropping_title": "エネルギー低下中",
        "dropping_subtitle": "こまめな休憩を取り入れましょう",
        "dropping_comment": "エネルギーが下がってきています。休憩と水分補給を意識しましょう。",
        "caution_title": "要注意",
        "caution_subtitle": "今日は回復を最優先にしましょう",
        "caution_comment": "エネルギーがかなり低い状態です。しっかり休んで回復に努めましょう。",
        "rest_title": "深呼吸",
        "rest_description": "ゆっくりと深呼吸を3回繰り返して、心と体をリセットしましょう。",
        "rest_time": "2分",
        "hydrate_title": "水分補給",
        "hydrate_description": "空気が乾燥しています。コップ1杯の水を飲みましょう。",
        "hydrate_time": "1分",
        "tag_message": "今日のデータをもとに、無理のない範囲で取り組みましょう。",
        "detail": "AI分析が利用できないため、基本分析の結果を表示しています。",
    },
    "en": {
        "full_title": "Energy full",
        "full_subtitle": "A great state for trying something new",
        "full_comment": "You have plenty of energy. Make the most of a fulfilling day.",
        "balanced_title": "Balanced",
        "balanced_subtitle": "Keep a comfortable pace today",
        "balanced_comment": "Your energy is stable. Stay active within a comfortable range.",
        "dropping_title": "Energy dropping",
        "dropping_subtitle": "Build in short breaks",
        "dropping_comment": "Your energy is falling. Remember to rest and stay hydrated.",
        "caution_title": "Take care",
        "caution_subtitle": "Make recovery today's priority",
        "caution_comment": "Your energy is very low. Rest well and focus on recovery.",
        "rest_title": "Deep breath",
        "rest_description": "Take three slow, deep breaths to reset body and mind.",
        "rest_time": "2 min",
        "hydrate_title": "Hydrate",
        "hydrate_description": "The air is dry. Drink a glass of water.",
        "hydrate_time": "1 min",
        "tag_message": "Work on this at a comfortable pace based on today's data.",
        "detail": "AI analysis is unavailable; showing the basic analysis.",
    },
}


def _energy_band(level: float) -> str:
    if level > 70:
        return "full"
    if level > 40:
        return "balanced"
    if level > 20:
        return "dropping"
    return "caution"


def fallback_impact(level: float) -> str:
    if level > 70:
        return "low"
    if level > 20:
        return "medium"
    return "high"


def fallback_response(
    request: AIAnalysisRequest, registry: FocusAreaRegistry | None = None
) -> AIAnalysisResponse:
    """Deterministic stand-in used when the AI stage is unavailable."""
    lang = "ja" if request.user_context.language == "ja" else "en"
    text = _FALLBACK_TEXT[lang]
    band = _energy_band(request.battery_level)

    suggestions: list[ActionSuggestion] = []
    if request.battery_level < 50:
        suggestions.append(
            ActionSuggestion(
                title=text["rest_title"],
                description=text["rest_description"],
                action_type="rest",
                estimated_time=text["rest_time"],
                difficulty="easy",
            )
        )
    if request.environmental_context.humidity < 40:
        suggestions.append(
            ActionSuggestion(
                title=text["hydrate_title"],
                description=text["hydrate_description"],
                action_type="hydrate",
                estimated_time=text["hydrate_time"],
                difficulty="easy",
            )
        )

    insights = [
        TagInsight(
            tag=tag,
            icon=registry.icon_for(tag) if registry is not None else "",
            message=text["tag_message"],
            urgency="info",
        )
        for tag in request.user_context.active_tags
    ]

    now = _now_iso()
    return AIAnalysisResponse(
        headline=Headline(
            title=text[f"{band}_title"],
            subtitle=text[f"{band}_subtitle"],
            impact_level=fallback_impact(request.battery_level),
            confidence=50,
        ),
        energy_comment=text[f"{band}_comment"],
        tag_insights=insights,
        ai_action_suggestions=suggestions[:MAX_SUGGESTIONS],
        detail_analysis=text["detail"],
        data_quality=DataQuality(
            health_data_completeness=data_completeness(request),
            weather_data_age=0,
            analysis_timestamp=now,
        ),
        generated_at=now,
    )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class AIAnalysisService:
    """Runs one AI analysis for a request."""

    def __init__(
        self,
        client: StructuredLLMClient,
        registry: FocusAreaRegistry,
        max_tokens: int = 4000,
        temperature: float = 0.3,
    ) -> None:
        self.client = client
        self.registry = registry
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def analyze(
        self, request: AIAnalysisRequest, weather_data_age: float = 0.0
    ) -> AIAnalysisResponse:
        """Call the model and post-process its answer.

        Raises:
            AIServiceError: provider/JSON/structure failures, or
                INVALID_RESPONSE_QUALITY when the answer is too thin.
        """
        prompt = build_enhanced_prompt(request, self.registry)
        structured = await self.client.invoke(
            prompt,
            AIAnalysisResponse,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        response = structured.data

        problems = check_quality(response)
        if problems:
            raise AIServiceError(
                "AI response failed quality checks: " + ", ".join(problems),
                code="INVALID_RESPONSE_QUALITY",
            )

        return self._finalize(response, request, weather_data_age)

    def _finalize(
        self,
        response: AIAnalysisResponse,
        request: AIAnalysisRequest,
        weather_data_age: float,
    ) -> AIAnalysisResponse:
        now = _now_iso()
        insights = [
            insight if insight.icon else insight.model_copy(
                update={"icon": self.registry.icon_for(insight.tag)}
            )
            for insight in response.tag_insights
        ]
        data_quality = response.data_quality or DataQuality(
            health_data_completeness=data_completeness(request),
            weather_data_age=max(0.0, weather_data_age),
            analysis_timestamp=now,
        )
        return response.model_copy(
            update={
                "tag_insights": insights,
                "ai_action_suggestions": response.ai_action_suggestions[:MAX_SUGGESTIONS],
                "data_quality": data_quality,
                "generated_at": response.generated_at or now,
            }
        )
