"""Pick the best "today's try" opportunities for the current context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from tempo.domains.wellness.domain_logic.ai_models import AIAnalysisRequest

Priority = Literal["high", "medium", "low"]

PRIORITY_WEIGHTS: dict[str, int] = {"high": 3, "medium": 2, "low": 1}


@dataclass
class TryOpportunity:
    type: str
    priority: Priority
    reason: dict[str, str]  # language -> text

    def reason_for(self, language: str) -> str:
        return self.reason.get(language) or self.reason["en"]


_GENERAL_WELLNESS = TryOpportunity(
    "general_wellness",
    "low",
    {"ja": "一般的なウェルネス維持", "en": "General wellness maintenance"},
)

_TIME_OPPORTUNITIES: dict[str, TryOpportunity] = {
    "morning": TryOpportunity(
        "morning_activation",
        "medium",
        {"ja": "朝の活性化に最適なタイミング", "en": "Ideal timing to activate the morning"},
    ),
    "afternoon": TryOpportunity(
        "afternoon_sustain",
        "medium",
        {"ja": "午後のエネルギー維持が重要", "en": "Sustaining afternoon energy matters most"},
    ),
    "evening": TryOpportunity(
        "evening_preparation",
        "medium",
        {"ja": "夜への準備と回復の時間", "en": "Time to wind down and prepare for the night"},
    ),
    "night": TryOpportunity(
        "night_recovery",
        "high",
        {
            "ja": "睡眠準備と翌日への回復が最優先",
            "en": "Sleep preparation and recovery for tomorrow come first",
        },
    ),
}


def analyze_opportunities(request: AIAnalysisRequest) -> list[TryOpportunity]:
    """All matching opportunities, highest priority first (stable within a priority)."""
    opportunities: list[TryOpportunity] = []

    if request.battery_level > 70:
        opportunities.append(
            TryOpportunity(
                "energy_peak",
                "high",
                {
                    "ja": "エネルギーレベルが高く、新しいチャレンジに最適",
                    "en": "Energy is high; a great moment for a new challenge",
                },
            )
        )
    elif request.battery_level < 30:
        opportunities.append(
            TryOpportunity(
                "recovery_focus",
                "high",
                {
                    "ja": "エネルギー不足、回復重視の提案が必要",
                    "en": "Energy is low; recovery-focused suggestions are needed",
                },
            )
        )

    env = request.environmental_context
    if env.pressure_trend < -3:
        opportunities.append(
            TryOpportunity(
                "pressure_support",
                "high",
                {
                    "ja": "気圧低下による体調影響への対策が必要",
                    "en": "Falling pressure may affect how you feel; support is needed",
                },
            )
        )
    if env.humidity < 30:
        opportunities.append(
            TryOpportunity(
                "hydration_focus",
                "medium",
                {
                    "ja": "乾燥による脱水・肌トラブル対策が必要",
                    "en": "Dry air calls for hydration and skin care",
                },
            )
        )

    time_opportunity = _TIME_OPPORTUNITIES.get(request.user_context.time_of_day)
    if time_opportunity is not None:
        opportunities.append(time_opportunity)

    if not opportunities:
        return [_GENERAL_WELLNESS]
    return sorted(opportunities, key=lambda o: -PRIORITY_WEIGHTS[o.priority])


def best_opportunity(request: AIAnalysisRequest) -> TryOpportunity:
    return analyze_opportunities(request)[0]


def render_opportunities(opportunities: list[TryOpportunity], language: str = "ja") -> str:
    """Prompt section listing the opportunities for the model to build on."""
    if language == "ja":
        lines = ["## 今日のトライの機会"]
    else:
        lines = ["## Today's Try Opportunities"]
    for opp in opportunities:
        lines.append(f"- [{opp.priority}] {opp.type}: {opp.reason_for(language)}")
    return "\n".join(lines)
