"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Tempo wellness advisor configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; there is no auth layer in front of the MCP server.
    tempo_host: str = "127.0.0.1"
    tempo_port: int = 8011
    tempo_log_level: str = "info"
    tempo_allow_insecure_bind: bool = False

    # AI analysis
    llm_provider: Literal["anthropic", "openai", "mock"] = "anthropic"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    llm_max_tokens: int = 4000
    llm_temperature: float = 0.3

    # Analysis cache
    cache_memory_ttl_seconds: int = 3600
    cache_persistent_ttl_seconds: int = 14400
    cache_max_entries: int = 100

    # Cost control
    daily_budget_usd: float = 0.10

    # Rate limiting (sliding window, per user)
    rate_limit_requests: int = 10
    rate_limit_window_seconds: int = 60

    # Hybrid engine
    analysis_min_interval_seconds: int = 300
    maintenance_interval_seconds: int = 3600

    # Persistent cache storage (empty path = memory only)
    db_path: str = ""

    # Encryption of cached payloads at rest
    encryption_key: str = ""


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
