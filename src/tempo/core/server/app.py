"""Tempo Wellness Advisor MCP Server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from fastmcp import FastMCP

from tempo.core.cache.analysis_cache import IntelligentAnalysisCache
from tempo.core.cache.cost_tracker import CostTracker
from tempo.core.config.settings import get_settings
from tempo.core.focus.loader import load_focus_directory
from tempo.core.focus.registry import FocusAreaRegistry
from tempo.core.llm.client import StructuredLLMClient
from tempo.core.llm.provider import LLMProvider, create_provider
from tempo.core.llm.rate_limit import SlidingWindowRateLimiter
from tempo.core.storage.database import CacheDatabase, DatabaseError
from tempo.core.storage.encryption import EncryptionError, FieldEncryptor
from tempo.core.storage.repository import CacheRepository
from tempo.domains.wellness.ai_analysis import AIAnalysisService, refresh_timestamps
from tempo.domains.wellness.connectors import WellnessDataProvider
from tempo.domains.wellness.connectors.providers import MockWellnessDataProvider
from tempo.domains.wellness.hybrid_engine import HybridAnalysisEngine
from tempo.domains.wellness.prompts.wellness_prompts import register_wellness_prompts
from tempo.domains.wellness.resources.focus_areas import register_focus_area_resources
from tempo.domains.wellness.tools.cache_tools import register_cache_tools
from tempo.domains.wellness.tools.wellness_tools import register_wellness_tools

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

# Focus area YAML definitions live under src/tempo/domains/wellness/focus_areas/
_FOCUS_DIR = Path(__file__).resolve().parent.parent.parent / "domains" / "wellness" / "focus_areas"


def create_app(
    *,
    provider_override: LLMProvider | None = None,
    data_provider_override: WellnessDataProvider | None = None,
    clock: Callable[[], float] | None = None,
) -> FastMCP:
    """Create and configure the Tempo Wellness Advisor MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Loads the focus area registry
    3. Selects the LLM provider (mock when no API key is configured)
    4. Builds the analysis cache, optionally persistent and encrypted
    5. Builds the cost tracker, rate limiter, AI service and hybrid engine
    6. Registers all tools, resources, and prompts
    """
    settings = get_settings()
    clock = clock or time.time

    # --- Server instance ---
    server = FastMCP(
        "Tempo Wellness Advisor",
        instructions=(
            "Tempo wellness advisor. Turns sleep, heart-rate variability, "
            "activity and weather into an energy level and short, practical "
            "advice tailored to the user's focus areas. The static analysis "
            "is always available; AI enhancement is cached and budgeted."
        ),
    )

    # --- Focus areas ---
    registry = FocusAreaRegistry()
    focus_count = load_focus_directory(_FOCUS_DIR, registry)
    logger.info("Loaded %d focus areas from %s", focus_count, _FOCUS_DIR)

    # --- LLM provider ---
    if provider_override is not None:
        provider = provider_override
        provider_name = type(provider_override).__name__
    else:
        if settings.llm_provider == "mock":
            provider_name = "mock"
            api_key = ""
            model = ""
        elif settings.llm_provider == "anthropic":
            api_key = settings.anthropic_api_key
            model = settings.anthropic_model
            provider_name = "anthropic" if api_key else "mock"
        elif settings.llm_provider == "openai":
            api_key = settings.openai_api_key
            model = settings.openai_model
            provider_name = "openai" if api_key else "mock"
        else:  # pragma: no cover
            raise ValueError(f"Unknown LLM provider: {settings.llm_provider!r}")

        if provider_name == "mock" and settings.llm_provider != "mock":
            logger.warning(
                "No API key configured for provider '%s'; falling back to mock provider",
                settings.llm_provider,
            )
        provider = create_provider(provider_name=provider_name, api_key=api_key, model=model)

    llm_client = StructuredLLMClient(provider=provider)

    # --- Wellness data provider ---
    if data_provider_override is not None:
        data_provider = data_provider_override
    else:
        data_provider = MockWellnessDataProvider()
        logger.info("Using mock wellness data provider")

    # --- Persistent cache storage ---
    repository: CacheRepository | None = None
    if settings.db_path:
        try:
            encryptor = FieldEncryptor(settings.encryption_key) if settings.encryption_key else None
            database = CacheDatabase(settings.db_path)
            database.initialize()
            repository = CacheRepository(database, encryptor)
            logger.info(
                "Persistent cache initialized: %s (schema v%d, encrypted=%s)",
                settings.db_path,
                database.get_schema_version(),
                repository.encrypted,
            )
        except (EncryptionError, DatabaseError) as exc:
            logger.error("Failed to initialize storage: %s", exc)
            logger.warning("Continuing without persistence — cache is memory only")
    else:
        logger.info("No DB_PATH configured — analysis cache is memory only")

    # --- Cache, budget, rate limit ---
    cache = IntelligentAnalysisCache(
        memory_ttl=settings.cache_memory_ttl_seconds,
        persistent_ttl=settings.cache_persistent_ttl_seconds,
        max_entries=settings.cache_max_entries,
        store=repository,
        on_adapt=refresh_timestamps,
        clock=clock,
    )
    cost_tracker = CostTracker(
        daily_budget=settings.daily_budget_usd, store=repository, clock=clock
    )
    rate_limiter = SlidingWindowRateLimiter(
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )

    # --- Analysis services ---
    ai_service = AIAnalysisService(
        llm_client,
        registry,
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
    )
    hybrid_engine = HybridAnalysisEngine(
        ai_service,
        cache,
        cost_tracker,
        rate_limiter,
        registry,
        min_interval_seconds=settings.analysis_min_interval_seconds,
        maintenance_interval_seconds=settings.maintenance_interval_seconds,
        clock=clock,
    )

    # --- Register tools ---
    @server.tool
    async def health_check() -> dict:
        """Check server health and return basic status information."""
        status = {
            "status": "ok",
            "server": "Tempo Wellness Advisor",
            "version": VERSION,
            "focus_areas_loaded": focus_count,
            "llm_provider": provider_name,
            "data_source": data_provider.data_source,
            "persistence_enabled": repository is not None,
        }
        if repository is not None:
            status["cache_entries_stored"] = repository.count_entries()
        return status

    register_wellness_tools(
        server, hybrid_engine, ai_service, data_provider, cache, cost_tracker, rate_limiter
    )
    register_cache_tools(server, cache, cost_tracker)
    logger.info("Wellness analysis tools registered")

    # --- Register resources ---
    register_focus_area_resources(server, registry)

    # --- Register prompts ---
    register_wellness_prompts(server)

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
