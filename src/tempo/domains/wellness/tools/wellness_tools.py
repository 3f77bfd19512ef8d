"""MCP tools for wellness analysis (static, hybrid, AI-only, environment, battery)."""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import pydantic
from fastmcp import FastMCP

from tempo.core.errors import (
    AppError,
    ValidationError,
    create_error_response,
    format_validation_error,
)
from tempo.domains.wellness.ai_analysis import estimate_cost
from tempo.domains.wellness.domain_logic.ai_models import AIAnalysisRequest, AIAnalysisResponse
from tempo.domains.wellness.domain_logic.battery import BatteryEngine
from tempo.domains.wellness.domain_logic.environment import environment_advice as build_advice
from tempo.domains.wellness.domain_logic.environment import weather_pressure_trend
from tempo.domains.wellness.domain_logic.models import FOCUS_TAGS
from tempo.domains.wellness.hybrid_engine import cache_context_for

if TYPE_CHECKING:
    from tempo.core.cache.analysis_cache import IntelligentAnalysisCache
    from tempo.core.cache.cost_tracker import CostTracker
    from tempo.core.llm.rate_limit import SlidingWindowRateLimiter
    from tempo.domains.wellness.ai_analysis import AIAnalysisService
    from tempo.domains.wellness.connectors import WellnessDataProvider
    from tempo.domains.wellness.hybrid_engine import HybridAnalysisEngine

logger = logging.getLogger(__name__)

_LANGUAGES = ("ja", "en")
_USER_MODES = ("standard", "athlete")


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _parse_json_object(value: str | None, name: str) -> dict[str, Any] | None:
    """Parse an optional JSON-object parameter; empty means "not given"."""
    if value in (None, ""):
        return None
    try:
        parsed = json.loads(value)
    except (json.JSONDecodeError, TypeError):
        raise ValidationError(f"{name} must be a valid JSON object") from None
    if not isinstance(parsed, dict):
        raise ValidationError(f"{name} must be a JSON object")
    return parsed


def _parse_tags(value: str | None) -> list[str]:
    """Accept a JSON array or a comma-separated list of focus tags."""
    if value in (None, ""):
        return []
    text = value.strip()
    if text.startswith("["):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            raise ValidationError("focus_tags must be a JSON array of strings") from None
        if not isinstance(parsed, list) or not all(isinstance(t, str) for t in parsed):
            raise ValidationError("focus_tags must be a JSON array of strings")
        tags = [t.strip() for t in parsed if t.strip()]
    else:
        tags = [t.strip() for t in text.split(",") if t.strip()]
    unknown = [t for t in tags if t not in FOCUS_TAGS]
    if unknown:
        raise ValidationError(
            f"Unknown focus tags: {', '.join(unknown)} (expected: {', '.join(FOCUS_TAGS)})"
        )
    return tags


def _validate_language(value: str | None) -> str:
    if value in (None, ""):
        return "ja"
    if value not in _LANGUAGES:
        raise ValidationError("language must be one of: ja | en")
    return value


def _validate_user_mode(value: str | None) -> str:
    if value in (None, ""):
        return "standard"
    if value not in _USER_MODES:
        raise ValidationError("user_mode must be one of: standard | athlete")
    return value


def _validate_level(value: float | None, name: str) -> float | None:
    if value is None:
        return None
    if not 0 <= value <= 100:
        raise ValidationError(f"{name} must be between 0 and 100")
    return float(value)


def _dump(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False)


def _error(exc: BaseException) -> str:
    return _dump(create_error_response(exc))


def register_wellness_tools(
    mcp: FastMCP,
    hybrid_engine: HybridAnalysisEngine,
    ai_service: AIAnalysisService,
    data_provider: WellnessDataProvider,
    cache: IntelligentAnalysisCache,
    cost_tracker: CostTracker,
    rate_limiter: SlidingWindowRateLimiter,
) -> None:
    """Register the wellness analysis tools on the MCP server.

    Structured parameters are JSON strings. When ``health_data`` or
    ``weather_data`` is empty the configured data provider supplies it.
    """

    async def _health_or_default(health_data: str | None) -> dict[str, Any]:
        parsed = _parse_json_object(health_data, "health_data")
        return parsed if parsed is not None else await data_provider.get_health_data()

    async def _weather_or_default(weather_data: str | None) -> dict[str, Any]:
        parsed = _parse_json_object(weather_data, "weather_data")
        return parsed if parsed is not None else await data_provider.get_weather()

    @mcp.tool
    async def wellness_analysis(
        focus_tags: str = "",
        health_data: str = "",
        weather_data: str = "",
        user_id: str = "default",
        language: str = "ja",
        user_mode: str = "standard",
        previous_energy: float | None = None,
        previous_pressure: float | None = None,
        include_ai: bool = True,
    ) -> str:
        """Analyze today's energy and return personalized wellness advice.

        Runs the deterministic static analysis first, then (optionally) an AI
        analysis tailored to the focus areas. Cached analyses are reused for
        similar conditions, and a basic analysis is returned whenever the AI
        stage is unavailable.

        Args:
            focus_tags: Today's focus areas, as a JSON array or comma list
                (work, beauty, diet, sleep, fitness, chill).
            health_data: Optional JSON object with sleep, hrv, heart_rate and
                activity sections. Uses the configured data source when empty.
            weather_data: Optional JSON object with temperature_c, humidity,
                pressure_hpa and friends. Uses the configured data source when empty.
            user_id: Identifier used for budget and rate limiting.
            language: 'ja' (default) or 'en'.
            user_mode: 'standard' (default) or 'athlete'.
            previous_energy: Previous energy level (0-100), for the trend.
            previous_pressure: Previous pressure reading in hPa, for the trend.
            include_ai: Set False to return the static analysis only.
        """
        start_time = time.monotonic()
        try:
            tags = _parse_tags(focus_tags)
            lang = _validate_language(language)
            mode = _validate_user_mode(user_mode)
            prev_energy = _validate_level(previous_energy, "previous_energy")
            health = await _health_or_default(health_data)
            weather = await _weather_or_default(weather_data)
            air_quality = await data_provider.get_air_quality()

            result = await hybrid_engine.generate_if_needed(
                health,
                weather,
                focus_tags=tags,
                user_id=user_id,
                language=lang,
                user_mode=mode,
                previous_energy=prev_energy,
                previous_pressure=previous_pressure,
                air_quality=air_quality,
                include_ai=include_ai,
            )
        except AppError as exc:
            logger.warning("wellness_analysis failed [%s]: %s", exc.code, exc.message)
            return _error(exc)

        elapsed_ms = (time.monotonic() - start_time) * 1000
        logger.info(
            "wellness_analysis: source=%s, tags=%s, %.0fms", result.source, tags, elapsed_ms
        )
        payload = {"success": True, "data": result.to_dict()}
        payload.update(data_provider.get_provenance())
        return _dump(payload)

    @mcp.tool
    async def static_wellness_analysis(
        health_data: str = "",
        weather_data: str = "",
        language: str = "ja",
    ) -> str:
        """Compute today's energy level from health data alone (no AI).

        Args:
            health_data: Optional JSON object; uses the configured data source when empty.
            weather_data: Optional JSON object; uses the configured data source when empty.
            language: 'ja' (default) or 'en'.
        """
        try:
            lang = _validate_language(language)
            health = await _health_or_default(health_data)
            weather = await _weather_or_default(weather_data)
            result = await hybrid_engine.analyze(health, weather, language=lang, include_ai=False)
        except AppError as exc:
            return _error(exc)
        return _dump({"success": True, "data": result.to_dict()})

    @mcp.tool
    async def ai_analysis(request_json: str, user_id: str = "default") -> str:
        """Run an AI analysis for a fully prepared analysis request.

        Args:
            request_json: JSON object with batteryLevel, batteryTrend,
                biologicalContext, environmentalContext and userContext.
            user_id: Identifier used for budget and rate limiting.
        """
        try:
            raw = _parse_json_object(request_json, "request_json")
            if raw is None:
                raise ValidationError("request_json is required")
            try:
                request = AIAnalysisRequest.model_validate(raw)
            except pydantic.ValidationError as exc:
                raise format_validation_error(exc) from None

            hybrid_engine.maintain()
            context = cache_context_for(request)
            lookup = cache.get(context)
            if lookup.hit:
                analysis = AIAnalysisResponse.model_validate(lookup.payload)
                return _dump(
                    {
                        "success": True,
                        "data": analysis.model_dump(by_alias=True, mode="json"),
                        "cached": True,
                        "cacheLayer": lookup.layer,
                    }
                )

            if cost_tracker.is_over_budget(user_id):
                return _dump(
                    {
                        "success": False,
                        "error": "Daily AI budget exhausted; try again tomorrow",
                        "code": "BUDGET_EXCEEDED",
                    }
                )

            rate_limiter.check(user_id)
            analysis = await ai_service.analyze(request)
        except AppError as exc:
            logger.warning("ai_analysis failed [%s]: %s", exc.code, exc.message)
            return _error(exc)

        data = analysis.model_dump(by_alias=True, mode="json")
        cache.put(context, data, user_id)
        cost_tracker.record(user_id, estimate_cost(request))
        return _dump({"success": True, "data": data, "cached": False})

    @mcp.tool
    async def environment_advice(
        weather_data: str = "",
        air_quality: str = "",
        previous_pressure: float | None = None,
        language: str = "ja",
    ) -> str:
        """Short, practical advice for today's weather and air quality.

        Args:
            weather_data: Optional JSON object; uses the configured data source when empty.
            air_quality: Optional JSON object with aqi (and pm25); uses the
                configured data source when empty.
            previous_pressure: Previous pressure reading in hPa.
            language: 'ja' (default) or 'en'.
        """
        try:
            lang = _validate_language(language)
            weather = await _weather_or_default(weather_data)
            aq = _parse_json_object(air_quality, "air_quality")
            if aq is None:
                aq = await data_provider.get_air_quality()
        except AppError as exc:
            return _error(exc)

        trend = weather_pressure_trend(weather, previous_pressure)
        return _dump(
            {
                "success": True,
                "data": {
                    "advice": build_advice(weather, aq, trend, lang),
                    "pressureTrend": trend,
                },
            }
        )

    @mcp.tool
    async def battery_status(
        sleep: str = "",
        hrv: str = "",
        active_energy: float = 0.0,
        stress_level: float = 0.0,
        weather_data: str = "",
        user_mode: str = "standard",
        previous_level: float | None = None,
        hours_elapsed: float = 0.0,
    ) -> str:
        """Human-battery view of energy: morning charge and current level.

        Args:
            sleep: Optional JSON object (duration_hours, quality).
            hrv: Optional JSON object (average_ms, baseline_ms, trend).
            active_energy: Active calories burned since waking.
            stress_level: Perceived stress, 0-10.
            weather_data: Optional JSON object for environmental drain.
            user_mode: 'standard' (default) or 'athlete'.
            previous_level: Yesterday's final level (0-100).
            hours_elapsed: Hours since waking; drain is applied over this span.
        """
        try:
            mode = _validate_user_mode(user_mode)
            prev = _validate_level(previous_level, "previous_level")
            if not 0 <= stress_level <= 10:
                raise ValidationError("stress_level must be between 0 and 10")
            if hours_elapsed < 0:
                raise ValidationError("hours_elapsed must not be negative")
            sleep_data = _parse_json_object(sleep, "sleep")
            hrv_data = _parse_json_object(hrv, "hrv")
            if sleep_data is None or hrv_data is None:
                defaults = await data_provider.get_health_data()
                sleep_data = sleep_data if sleep_data is not None else defaults.get("sleep") or {}
                hrv_data = hrv_data if hrv_data is not None else defaults.get("hrv") or {}
            weather = _parse_json_object(weather_data, "weather_data")
        except AppError as exc:
            return _error(exc)

        now = datetime.now(timezone.utc)
        engine = BatteryEngine(mode)
        battery = engine.charge(
            sleep_data, hrv_data, previous_level=prev, now=now - timedelta(hours=hours_elapsed)
        )
        battery = engine.update(battery, active_energy, stress_level, weather, now=now)
        return _dump({"success": True, "data": battery.to_dict()})

