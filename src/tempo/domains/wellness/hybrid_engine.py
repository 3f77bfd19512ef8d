"""Hybrid analysis engine: static analysis first, AI enhancement second.

The static stage always yields a result. The AI stage is served from cache
when possible, skipped for users over their daily budget, and degrades to
a deterministic response when the model call fails.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from tempo.core.cache.analysis_cache import CacheContext
from tempo.core.errors import AppError, create_error_response
from tempo.domains.wellness.ai_analysis import estimate_cost, fallback_response
from tempo.domains.wellness.domain_logic import static_engine
from tempo.domains.wellness.domain_logic.ai_models import AIAnalysisRequest, AIAnalysisResponse
from tempo.domains.wellness.domain_logic.battery import BatteryEngine
from tempo.domains.wellness.domain_logic.environment import (
    environment_advice,
    weather_pressure_trend,
)
from tempo.domains.wellness.domain_logic.models import AnalysisResult, StaticAnalysis
from tempo.domains.wellness.domain_logic.request_builder import build_analysis_request

if TYPE_CHECKING:
    from tempo.core.cache.analysis_cache import IntelligentAnalysisCache
    from tempo.core.cache.cost_tracker import CostTracker
    from tempo.core.focus.registry import FocusAreaRegistry
    from tempo.core.llm.rate_limit import SlidingWindowRateLimiter
    from tempo.domains.wellness.ai_analysis import AIAnalysisService

logger = logging.getLogger(__name__)


def cache_context_for(request: AIAnalysisRequest) -> CacheContext:
    return CacheContext(
        energy=request.battery_level,
        time_of_day=request.user_context.time_of_day,
        tags=tuple(sorted(request.user_context.active_tags)),
        humidity=request.environmental_context.humidity,
        pressure_trend=request.environmental_context.pressure_trend,
    )


@dataclass
class _LastRun:
    at: float
    result: AnalysisResult


class HybridAnalysisEngine:
    """Coordinates static analysis, cache, budget, rate limit and AI calls."""

    def __init__(
        self,
        ai_service: AIAnalysisService,
        cache: IntelligentAnalysisCache,
        cost_tracker: CostTracker,
        rate_limiter: SlidingWindowRateLimiter,
        registry: FocusAreaRegistry,
        min_interval_seconds: float = 300,
        maintenance_interval_seconds: float = 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ai_service = ai_service
        self.cache = cache
        self.cost_tracker = cost_tracker
        self.rate_limiter = rate_limiter
        self.registry = registry
        self.min_interval_seconds = min_interval_seconds
        self.maintenance_interval_seconds = maintenance_interval_seconds
        self._clock = clock
        self._last_runs: dict[str, _LastRun] = {}
        self._last_maintenance = clock()

    async def analyze(
        self,
        health_data: dict | None,
        weather: dict | None = None,
        *,
        focus_tags: list[str] | None = None,
        user_id: str = "default",
        language: str = "ja",
        user_mode: str = "standard",
        previous_energy: float | None = None,
        previous_pressure: float | None = None,
        air_quality: dict | None = None,
        include_ai: bool = True,
        force_refresh: bool = False,
        now: datetime | None = None,
    ) -> AnalysisResult:
        """Run the static stage, then (optionally) the AI stage, and merge.

        Raises:
            RateLimitError: when a fresh AI call is needed but the user has
                exhausted the request window.
        """
        now = now or datetime.now(timezone.utc)
        self.maintain()

        # --- Static stage ---
        try:
            static = static_engine.analyze(health_data, weather, now=now)
        except static_engine.StaticAnalysisError as exc:
            logger.warning("Static analysis unavailable (%s); using fallback values", exc)
            static = StaticAnalysis.fallback()

        result = AnalysisResult(
            static_analysis=static,
            source="fallback" if static.is_fallback else "static_only",
            last_updated=now,
            message=static_engine.basic_message(static.battery_state, language),
            suggestions=static_engine.improvement_suggestions(static, language),
        )

        if weather:
            trend = weather_pressure_trend(weather, previous_pressure)
            result.environment_advice = environment_advice(weather, air_quality, trend, language)

        if health_data and (health_data.get("sleep") or health_data.get("hrv")):
            result.battery = BatteryEngine(user_mode).charge(
                health_data.get("sleep") or {},
                health_data.get("hrv") or {},
                previous_level=previous_energy,
                now=now,
            )

        if static.is_fallback or not include_ai:
            return result

        # --- AI stage ---
        request = build_analysis_request(
            health_data or {},
            weather,
            static.energy_level,
            active_tags=focus_tags,
            language=language,
            user_mode=user_mode,
            previous_energy=previous_energy,
            previous_pressure=previous_pressure,
            now=now,
        )
        context = cache_context_for(request)
        if force_refresh:
            self.cache.invalidate(context.key())

        lookup = self.cache.get(context)
        if lookup.hit:
            result.ai_analysis = AIAnalysisResponse.model_validate(lookup.payload)
            result.source = "cached"
            return result

        if self.cost_tracker.is_over_budget(user_id):
            logger.info("User %s is over the daily AI budget; cache-only mode", user_id)
            result.ai_analysis = fallback_response(request, self.registry)
            result.ai_error = {
                "success": False,
                "error": "Daily AI budget exhausted; showing basic analysis",
                "code": "BUDGET_EXCEEDED",
            }
            return result

        self.rate_limiter.check(user_id)

        try:
            response = await self.ai_service.analyze(request, _weather_age_minutes(weather, now))
        except AppError as exc:
            logger.warning("AI analysis failed [%s]: %s; using static result", exc.code, exc.message)
            result.ai_analysis = fallback_response(request, self.registry)
            result.ai_error = create_error_response(exc)
            return result
        except Exception as exc:
            logger.exception("Unexpected AI analysis failure; using static result")
            result.ai_analysis = fallback_response(request, self.registry)
            result.ai_error = create_error_response(exc)
            return result

        self.cache.put(context, response.model_dump(by_alias=True, mode="json"), user_id)
        self.cost_tracker.record(user_id, estimate_cost(request))
        result.ai_analysis = response
        result.source = "hybrid"
        return result

    async def generate_if_needed(
        self, health_data: dict | None, weather: dict | None = None, **kwargs
    ) -> AnalysisResult:
        """Return the user's last result if it is younger than the minimum interval."""
        user_id = kwargs.get("user_id", "default")
        last = self._last_runs.get(user_id)
        now = self._clock()
        if last is not None and now - last.at < self.min_interval_seconds:
            logger.debug("Skipping analysis for %s; last run %.0fs ago", user_id, now - last.at)
            return last.result

        result = await self.analyze(health_data, weather, **kwargs)
        self._remember(user_id, result, now)
        return result

    async def refresh(
        self, health_data: dict | None, weather: dict | None = None, **kwargs
    ) -> AnalysisResult:
        """Bypass the throttle and the cached analysis for this context, then re-analyze."""
        user_id = kwargs.get("user_id", "default")
        self._last_runs.pop(user_id, None)
        result = await self.analyze(health_data, weather, force_refresh=True, **kwargs)
        self._remember(user_id, result, self._clock())
        return result

    def _remember(self, user_id: str, result: AnalysisResult, at: float) -> None:
        stale = [u for u, run in self._last_runs.items() if at - run.at >= self.min_interval_seconds]
        for u in stale:
            del self._last_runs[u]
        self._last_runs[user_id] = _LastRun(at=at, result=result)

    def maintain(self) -> None:
        """Periodically drop expired cache entries and old cost rows."""
        now = self._clock()
        if now - self._last_maintenance < self.maintenance_interval_seconds:
            return
        self._last_maintenance = now
        expired = self.cache.cleanup()
        dropped = self.cost_tracker.cleanup()
        logger.debug(
            "Maintenance: %d expired cache entries, %d old cost rows removed", expired, dropped
        )


def _weather_age_minutes(weather: dict | None, now: datetime) -> float:
    if not weather or not weather.get("observed_at"):
        return 0.0
    try:
        observed = datetime.fromisoformat(str(weather["observed_at"]))
    except ValueError:
        return 0.0
    if observed.tzinfo is None:
        observed = observed.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return max(0.0, (now - observed).total_seconds() / 60.0)
