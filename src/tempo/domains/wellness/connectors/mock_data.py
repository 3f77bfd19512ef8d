"""Realistic fixed data for development and tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any


def get_mock_health_data() -> dict[str, Any]:
    """A reasonably rested adult on a normal weekday."""
    return {
        "sleep": {
            "duration_hours": 7.0,
            "quality": 0.82,
            "deep_hours": 1.75,
            "rem_hours": 1.5,
        },
        "hrv": {"average_ms": 58.0, "baseline_ms": 52.0, "trend": "stable"},
        "heart_rate": {"resting_bpm": 61.0},
        "activity": {"steps": 6400, "active_minutes": 24, "active_calories": 310.0},
        "stress_level": 3.0,
    }


def get_mock_weather() -> dict[str, Any]:
    """A mild, slightly dry morning with pressure easing off."""
    return {
        "temperature_c": 14.0,
        "feels_like_c": 12.5,
        "humidity": 38.0,
        "pressure_hpa": 1009.0,
        "previous_pressure_hpa": 1012.5,
        "uv_index": 4.0,
        "weather_code": 2,
        "observed_at": (datetime.now(timezone.utc) - timedelta(minutes=15)).isoformat(),
    }


def get_mock_air_quality() -> dict[str, Any]:
    return {"aqi": 42, "pm25": 11.0, "pm10": 24.0}
