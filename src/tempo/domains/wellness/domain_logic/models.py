"""Wellness domain vocabularies, constants and result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from tempo.domains.wellness.domain_logic.ai_models import AIAnalysisResponse


# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------

FocusTag = Literal["work", "beauty", "diet", "sleep", "fitness", "chill"]
TimeOfDay = Literal["morning", "afternoon", "evening", "night"]
Language = Literal["ja", "en"]
UserMode = Literal["standard", "athlete"]
BatteryTrend = Literal["recovering", "declining", "stable"]
BatteryState = Literal["critical", "low", "medium", "high"]
PressureTrendLabel = Literal["rising", "stable", "falling"]
AnalysisSource = Literal["static_only", "hybrid", "cached", "fallback"]
ImpactLevel = Literal["low", "medium", "high", "critical"]
Urgency = Literal["info", "warning", "critical"]
ActionType = Literal["rest", "hydrate", "exercise", "focus", "social", "beauty"]
Difficulty = Literal["easy", "medium", "hard"]

FOCUS_TAGS: tuple[str, ...] = ("work", "beauty", "diet", "sleep", "fitness", "chill")


# ---------------------------------------------------------------------------
# Baselines (healthy adult, ~30 years old)
# ---------------------------------------------------------------------------

BASELINE_HRV_MS = 50.0
BASELINE_RHR_BPM = 65.0
BASELINE_RESPIRATORY_RATE = 16.0
STANDARD_PRESSURE_HPA = 1013.25

# Neutral stand-ins when a metric is missing
FALLBACK_SLEEP_HOURS = 7.0
FALLBACK_SLEEP_QUALITY = 0.7
FALLBACK_STEPS = 5000
FALLBACK_ACTIVE_MINUTES = 20
FALLBACK_SCORE = 50.0


def battery_state_for(level: float) -> BatteryState:
    """Map an energy level (0-100) to its battery state."""
    if level < 20:
        return "critical"
    if level < 40:
        return "low"
    if level < 70:
        return "medium"
    return "high"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class StaticAnalysis:
    """Deterministic on-device style analysis; always available, no LLM."""

    energy_level: float
    battery_state: BatteryState
    sleep_score: float
    activity_score: float
    stress_score: float
    generated_at: datetime = field(default_factory=_utcnow)
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def fallback(cls, reason: str = "no_health_data") -> StaticAnalysis:
        return cls(
            energy_level=FALLBACK_SCORE,
            battery_state="medium",
            sleep_score=FALLBACK_SCORE,
            activity_score=FALLBACK_SCORE,
            stress_score=FALLBACK_SCORE,
            details={"fallback": reason},
        )

    @property
    def is_fallback(self) -> bool:
        return "fallback" in self.details

    def to_dict(self) -> dict[str, Any]:
        return {
            "energyLevel": round(self.energy_level, 1),
            "batteryState": self.battery_state,
            "basicMetrics": {
                "sleep": round(self.sleep_score),
                "activity": round(self.activity_score),
                "stress": round(self.stress_score),
            },
            "generatedAt": self.generated_at.isoformat(),
        }


@dataclass
class HumanBattery:
    """Energy as a battery: charged overnight, drained through the day."""

    current_level: float
    morning_charge: float
    drain_rate: float  # points per hour, negative while draining
    state: BatteryState
    last_updated: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentLevel": round(self.current_level, 1),
            "morningCharge": round(self.morning_charge, 1),
            "drainRate": round(self.drain_rate, 2),
            "state": self.state,
            "lastUpdated": self.last_updated.isoformat(),
        }


@dataclass
class AnalysisResult:
    """Static analysis merged with an optional AI analysis for display."""

    static_analysis: StaticAnalysis
    source: AnalysisSource
    ai_analysis: AIAnalysisResponse | None = None
    last_updated: datetime = field(default_factory=_utcnow)
    message: str = ""
    suggestions: list[str] = field(default_factory=list)
    environment_advice: list[dict[str, str]] = field(default_factory=list)
    battery: HumanBattery | None = None
    ai_error: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "staticAnalysis": self.static_analysis.to_dict(),
            "aiAnalysis": (
                self.ai_analysis.model_dump(by_alias=True, mode="json")
                if self.ai_analysis is not None
                else None
            ),
            "source": self.source,
            "lastUpdated": self.last_updated.isoformat(),
            "message": self.message,
            "suggestions": self.suggestions,
            "environmentAdvice": self.environment_advice,
        }
        if self.battery is not None:
            result["battery"] = self.battery.to_dict()
        if self.ai_error is not None:
            result["aiError"] = self.ai_error
        return result
