"""Environment helpers: pressure trend, time-of-day buckets, rule-based advice."""

from __future__ import annotations

from datetime import datetime

from tempo.domains.wellness.domain_logic.models import PressureTrendLabel, TimeOfDay
from tempo.domains.wellness.domain_logic.numeric import optional_float, to_float

PRESSURE_TREND_THRESHOLD_HPA = 2.0
MAX_ENVIRONMENT_ADVICE = 3


def pressure_trend(current: float, previous: float | None) -> PressureTrendLabel:
    """Classify the pressure change since the previous reading (±2 hPa band)."""
    if previous is None:
        return "stable"
    diff = current - previous
    if diff > PRESSURE_TREND_THRESHOLD_HPA:
        return "rising"
    if diff < -PRESSURE_TREND_THRESHOLD_HPA:
        return "falling"
    return "stable"


def weather_pressure_trend(weather: dict, previous: float | None = None) -> PressureTrendLabel:
    """Pressure trend for a weather payload.

    ``previous`` defaults to the payload's ``previous_pressure_hpa``. A
    missing or non-numeric reading on either side reads as "stable".
    """
    if previous is None:
        previous = weather.get("previous_pressure_hpa")
    current = optional_float(weather.get("pressure_hpa"))
    if current is None:
        return "stable"
    return pressure_trend(current, optional_float(previous))


def time_of_day(dt: datetime) -> TimeOfDay:
    hour = dt.hour
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 21:
        return "evening"
    return "night"


# ---------------------------------------------------------------------------
# Environment advice
# ---------------------------------------------------------------------------

_ADVICE: dict[str, dict[str, str]] = {
    "ja": {
        "air_good": "大気質は良好。屋外運動に適しています",
        "air_moderate": "大気質は普通です。敏感な方は長時間の屋外活動を控えめに",
        "air_poor": "大気質が悪化しています。屋外での激しい運動は避けましょう",
        "temp_low": "気温が低めです。外出時は暖かい服装を",
        "temp_high": "気温が高めです。こまめな水分補給と日陰での休憩を",
        "uv_high": "UV指数が高めです。日焼け止めと帽子の着用を推奨します",
        "uv_moderate": "UV指数は中程度。長時間の外出には日焼け止めを",
        "pressure_falling": "気圧が下降中です。頭痛が出やすい方はお気をつけて",
        "humidity_low": "乾燥しています。保湿と水分補給を心がけましょう",
        "humidity_high": "湿度が高めです。熱中症に注意しましょう",
    },
    "en": {
        "air_good": "Air quality is good. A fine day for outdoor exercise.",
        "air_moderate": "Air quality is moderate. Sensitive people should limit long outdoor activity.",
        "air_poor": "Air quality is poor. Avoid strenuous outdoor exercise.",
        "temp_low": "It's cold out. Dress warmly when you go outside.",
        "temp_high": "It's hot out. Drink water often and rest in the shade.",
        "uv_high": "UV index is high. Sunscreen and a hat are recommended.",
        "uv_moderate": "UV index is moderate. Use sunscreen for longer outings.",
        "pressure_falling": "Pressure is falling. Take care if you're prone to headaches.",
        "humidity_low": "The air is dry. Moisturize and stay hydrated.",
        "humidity_high": "Humidity is high. Watch out for heat exhaustion.",
    },
}


def _advice(kind: str, key: str, language: str) -> dict[str, str]:
    table = _ADVICE.get(language, _ADVICE["en"])
    return {"type": kind, "message": table[key]}


def environment_advice(
    weather: dict,
    air_quality: dict | None,
    trend: PressureTrendLabel,
    language: str = "ja",
) -> list[dict[str, str]]:
    """Up to three advice items, highest priority first.

    Priority: air quality (always present when known), temperature, UV,
    pressure, humidity.
    """
    advice: list[dict[str, str]] = []

    if air_quality:
        aqi = to_float(air_quality.get("aqi"), 0.0)
        if aqi <= 50:
            advice.append(_advice("air_quality", "air_good", language))
        elif aqi <= 100:
            advice.append(_advice("air_quality", "air_moderate", language))
        else:
            advice.append(_advice("air_quality", "air_poor", language))

    temperature = to_float(weather.get("temperature_c"), 20.0)
    if temperature < 10:
        advice.append(_advice("temperature", "temp_low", language))
    elif temperature > 30:
        advice.append(_advice("temperature", "temp_high", language))

    uv = to_float(weather.get("uv_index"), 0.0)
    if uv >= 6:
        advice.append(_advice("uv", "uv_high", language))
    elif uv >= 3:
        advice.append(_advice("uv", "uv_moderate", language))

    if trend == "falling":
        advice.append(_advice("pressure", "pressure_falling", language))

    humidity = to_float(weather.get("humidity"), 50.0)
    if humidity < 30:
        advice.append(_advice("humidity", "humidity_low", language))
    elif humidity > 80:
        advice.append(_advice("humidity", "humidity_high", language))

    return advice[:MAX_ENVIRONMENT_ADVICE]
