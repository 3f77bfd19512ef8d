"""Deterministic static analysis: raw health + weather data -> energy level.

Every score is computed locally with fixed formulas (no LLM, no randomness),
so a result is always available even when the AI stage fails.

Expected health data shape (all keys optional)::

    {
        "sleep": {"duration_hours": 7.2, "quality": 0.8,
                  "deep_hours": 1.4, "rem_hours": 1.6},
        "hrv": {"average_ms": 55, "baseline_ms": 50, "trend": "stable"},
        "heart_rate": {"resting_bpm": 62},
        "activity": {"steps": 8400, "active_minutes": 35, "active_calories": 420},
    }

Weather keys: temperature_c, humidity, pressure_hpa (plus the extras read
by ``request_builder``).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from tempo.domains.wellness.domain_logic.models import (
    BASELINE_HRV_MS,
    FALLBACK_ACTIVE_MINUTES,
    FALLBACK_SLEEP_HOURS,
    FALLBACK_SLEEP_QUALITY,
    FALLBACK_STEPS,
    STANDARD_PRESSURE_HPA,
    BatteryState,
    StaticAnalysis,
    battery_state_for,
)
from tempo.domains.wellness.domain_logic.numeric import clamp, to_float

if TYPE_CHECKING:
    from tempo.domains.wellness.domain_logic.ai_models import AIAnalysisRequest


class StaticAnalysisError(Exception):
    """Raised when there is not enough health data for a static analysis."""


# ---------------------------------------------------------------------------
# Component scores (0-100)
# ---------------------------------------------------------------------------

def compute_sleep_score(sleep: dict) -> float:
    """Duration (up to 70 pts at 8h) plus quality (up to 30 pts)."""
    duration = to_float(sleep.get("duration_hours"), FALLBACK_SLEEP_HOURS)
    quality = clamp(to_float(sleep.get("quality"), FALLBACK_SLEEP_QUALITY), 0.0, 1.0)
    return clamp(min(70.0, duration / 8.0 * 70.0) + quality * 30.0)


def compute_activity_score(activity: dict) -> float:
    """Steps (up to 60 pts at 10k) plus active minutes (up to 40 pts at 30 min)."""
    steps = to_float(activity.get("steps"), FALLBACK_STEPS)
    active_minutes = to_float(activity.get("active_minutes"), FALLBACK_ACTIVE_MINUTES)
    return clamp(
        min(60.0, steps / 10000.0 * 60.0) + min(40.0, active_minutes / 30.0 * 40.0)
    )


def compute_stress_score(hrv: dict) -> float:
    """HRV relative to the 50 ms baseline; 0.8-1.2x baseline is ideal (100)."""
    hrv_ms = to_float(hrv.get("average_ms"), BASELINE_HRV_MS)
    ratio = hrv_ms / BASELINE_HRV_MS
    if 0.8 <= ratio <= 1.2:
        return 100.0
    if ratio > 1.2:
        return max(70.0, 100.0 - (ratio - 1.2) * 50.0)
    return max(30.0, ratio * 125.0)


def environmental_adjustment(weather: dict | None) -> float:
    """Penalty points (<= 0) for uncomfortable weather."""
    if not weather:
        return 0.0
    adjustment = 0.0
    temperature = to_float(weather.get("temperature_c"), 20.0)
    if temperature < 5 or temperature > 30:
        adjustment -= 5.0
    humidity = to_float(weather.get("humidity"), 50.0)
    if humidity < 30:
        adjustment -= 3.0
    elif humidity > 80:
        adjustment -= 2.0
    pressure = to_float(weather.get("pressure_hpa"), STANDARD_PRESSURE_HPA)
    if abs(pressure - STANDARD_PRESSURE_HPA) > 20:
        adjustment -= 4.0
    return adjustment


def compute_energy_level(
    sleep_score: float,
    stress_score: float,
    activity_score: float,
    adjustment: float = 0.0,
) -> float:
    """Sleep 50%, stress 30%, activity 20%, then weather adjustment."""
    return clamp(sleep_score * 0.5 + stress_score * 0.3 + activity_score * 0.2 + adjustment)


# ---------------------------------------------------------------------------
# Full analysis
# ---------------------------------------------------------------------------

def analyze(
    health_data: dict | None,
    weather: dict | None = None,
    now: datetime | None = None,
) -> StaticAnalysis:
    """Run the full static analysis.

    Raises:
        StaticAnalysisError: if ``health_data`` is empty.
    """
    if not health_data:
        raise StaticAnalysisError("No health data available for static analysis")

    sleep_score = compute_sleep_score(health_data.get("sleep") or {})
    activity_score = compute_activity_score(health_data.get("activity") or {})
    stress_score = compute_stress_score(health_data.get("hrv") or {})
    adjustment = environmental_adjustment(weather)
    energy = compute_energy_level(sleep_score, stress_score, activity_score, adjustment)

    return StaticAnalysis(
        energy_level=round(energy, 1),
        battery_state=battery_state_for(energy),
        sleep_score=round(sleep_score, 1),
        activity_score=round(activity_score, 1),
        stress_score=round(stress_score, 1),
        generated_at=now or datetime.now(timezone.utc),
        details={"environmental_adjustment": adjustment},
    )


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

_BASIC_MESSAGES: dict[str, dict[BatteryState, str]] = {
    "ja": {
        "high": "エネルギーが満ちています。新しいことに挑戦するのに良い日です。",
        "medium": "バランスの取れた状態です。無理せず自分のペースで過ごしましょう。",
        "low": "エネルギーが少なめです。こまめな休憩を意識しましょう。",
        "critical": "かなり疲れが溜まっています。今日は回復を最優先にしてください。",
    },
    "en": {
        "high": "You're fully charged. A good day to take on something new.",
        "medium": "You're in a balanced state. Keep a comfortable pace today.",
        "low": "Your energy is running low. Build in regular short breaks.",
        "critical": "You're quite drained. Make recovery your top priority today.",
    },
}

_SUGGESTIONS: dict[str, dict[str, str]] = {
    "ja": {
        "sleep": "今夜はいつもより30分早く布団に入ってみましょう。",
        "activity": "10分程度の散歩で体を動かしてみましょう。",
        "stress": "深呼吸やストレッチでリラックスする時間を取りましょう。",
        "keep": "今のリズムを保ちましょう。",
    },
    "en": {
        "sleep": "Try getting to bed 30 minutes earlier tonight.",
        "activity": "Fit in a 10-minute walk to get moving.",
        "stress": "Take a few minutes for deep breathing or stretching.",
        "keep": "Keep up your current rhythm.",
    },
}


def basic_message(state: BatteryState, language: str = "ja") -> str:
    return _BASIC_MESSAGES.get(language, _BASIC_MESSAGES["en"])[state]


def improvement_suggestions(analysis: StaticAnalysis, language: str = "ja") -> list[str]:
    """Fixed suggestions for the weakest component scores."""
    table = _SUGGESTIONS.get(language, _SUGGESTIONS["en"])
    suggestions: list[str] = []
    if analysis.sleep_score < 70:
        suggestions.append(table["sleep"])
    if analysis.activity_score < 50:
        suggestions.append(table["activity"])
    if analysis.stress_score < 60:
        suggestions.append(table["stress"])
    if not suggestions:
        suggestions.append(table["keep"])
    return suggestions


def data_completeness(request: AIAnalysisRequest) -> float:
    """Percentage of the six key signals that are actually present."""
    bio = request.biological_context
    env = request.environmental_context
    present = [
        bio.sleep_deep > 0,
        bio.sleep_rem > 0,
        bio.steps > 0,
        bio.active_calories > 0,
        env.humidity > 0,
        abs(env.pressure_trend) > 0,
    ]
    return round(sum(present) / len(present) * 100, 1)
