"""Build an AIAnalysisRequest from raw health and weather data."""

from __future__ import annotations

from datetime import datetime, timezone

from tempo.domains.wellness.domain_logic.ai_models import (
    AIAnalysisRequest,
    BiologicalContext,
    EnvironmentalContext,
    UserContext,
)
from tempo.domains.wellness.domain_logic.battery import battery_trend
from tempo.domains.wellness.domain_logic.environment import time_of_day
from tempo.domains.wellness.domain_logic.models import (
    BASELINE_HRV_MS,
    BASELINE_RESPIRATORY_RATE,
    BASELINE_RHR_BPM,
)
from tempo.domains.wellness.domain_logic.numeric import clamp, optional_float, to_float


def build_biological_context(health_data: dict) -> BiologicalContext:
    sleep = health_data.get("sleep") or {}
    hrv = health_data.get("hrv") or {}
    heart_rate = health_data.get("heart_rate") or {}
    activity = health_data.get("activity") or {}

    hrv_status = to_float(hrv.get("average_ms"), BASELINE_HRV_MS) - BASELINE_HRV_MS
    rhr_status = to_float(heart_rate.get("resting_bpm"), BASELINE_RHR_BPM) - BASELINE_RHR_BPM

    respiratory_rate = health_data.get("respiratory_rate")
    if respiratory_rate is None:
        # Estimated from HRV when the device does not report it.
        respiratory_rate = BASELINE_RESPIRATORY_RATE + (2 if hrv_status < 0 else -1)

    return BiologicalContext(
        hrv_status=round(hrv_status, 1),
        rhr_status=round(rhr_status, 1),
        sleep_deep=max(0, round(to_float(sleep.get("deep_hours")) * 60)),
        sleep_rem=max(0, round(to_float(sleep.get("rem_hours")) * 60)),
        respiratory_rate=clamp(to_float(respiratory_rate, BASELINE_RESPIRATORY_RATE), 10.0, 24.0),
        steps=max(0, int(to_float(activity.get("steps")))),
        active_calories=max(0.0, to_float(activity.get("active_calories"))),
    )


def build_environmental_context(
    weather: dict | None, previous_pressure: float | None = None
) -> EnvironmentalContext:
    weather = weather or {}
    current_pressure = optional_float(weather.get("pressure_hpa"))
    if previous_pressure is None:
        previous_pressure = weather.get("previous_pressure_hpa")
    previous_pressure = optional_float(previous_pressure)
    if current_pressure is not None and previous_pressure is not None:
        trend = current_pressure - previous_pressure
    else:
        trend = 0.0

    temperature = to_float(weather.get("temperature_c"), 20.0)
    return EnvironmentalContext(
        pressure_trend=round(trend, 1),
        humidity=clamp(to_float(weather.get("humidity"), 0.0)),
        feels_like=to_float(weather.get("feels_like_c"), temperature),
        uv_index=clamp(to_float(weather.get("uv_index"), 0.0), 0.0, 11.0),
        weather_code=int(to_float(weather.get("weather_code"), 0)),
    )


def build_analysis_request(
    health_data: dict,
    weather: dict | None,
    energy_level: float,
    active_tags: list[str] | None = None,
    language: str = "ja",
    user_mode: str = "standard",
    previous_energy: float | None = None,
    previous_pressure: float | None = None,
    now: datetime | None = None,
) -> AIAnalysisRequest:
    """Assemble the full request; ``energy_level`` comes from the static stage."""
    now = now or datetime.now(timezone.utc)
    return AIAnalysisRequest(
        battery_level=clamp(energy_level),
        battery_trend=battery_trend(energy_level, previous_energy),
        biological_context=build_biological_context(health_data),
        environmental_context=build_environmental_context(weather, previous_pressure),
        user_context=UserContext(
            active_tags=list(dict.fromkeys(active_tags or [])),
            time_of_day=time_of_day(now),
            language=language,
            user_mode=user_mode,
        ),
    )
