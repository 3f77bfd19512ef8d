"""Shared test fixtures for Tempo wellness tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "mock")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("DB_PATH", "")
    monkeypatch.setenv("ENCRYPTION_KEY", "")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from tempo.core.focus.loader import load_focus_directory  # noqa: E402
from tempo.core.focus.registry import FocusAreaRegistry  # noqa: E402
from tempo.domains.wellness.domain_logic.ai_models import (  # noqa: E402
    AIAnalysisRequest,
    BiologicalContext,
    EnvironmentalContext,
    UserContext,
)

FOCUS_DIR = _SRC_DIR / "tempo" / "domains" / "wellness" / "focus_areas"


class FakeClock:
    """Manually advanced wall clock (seconds)."""

    def __init__(self, start: float = 1_750_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

def _make_health_data(**overrides: Any) -> dict[str, Any]:
    """Health data with easy-to-check scores: sleep 67.5, activity 50, stress 100."""
    data: dict[str, Any] = {
        "sleep": {"duration_hours": 6.0, "quality": 0.5, "deep_hours": 1.5, "rem_hours": 1.25},
        "hrv": {"average_ms": 45.0, "baseline_ms": 45.0, "trend": "stable"},
        "heart_rate": {"resting_bpm": 60.0},
        "activity": {"steps": 5000, "active_minutes": 15, "active_calories": 300.0},
    }
    data.update(overrides)
    return data


def _make_weather(**overrides: Any) -> dict[str, Any]:
    """Comfortable weather: no static adjustment, no advice beyond air quality."""
    data: dict[str, Any] = {
        "temperature_c": 20.0,
        "feels_like_c": 19.0,
        "humidity": 50.0,
        "pressure_hpa": 1013.0,
        "previous_pressure_hpa": 1014.0,
        "uv_index": 1.0,
        "weather_code": 1,
    }
    data.update(overrides)
    return data


def _make_request(
    battery_level: float = 65.0,
    tags: list[str] | None = None,
    language: str = "ja",
    time_of_day: str = "morning",
    humidity: float = 55.0,
    pressure_trend: float = 0.0,
) -> AIAnalysisRequest:
    return AIAnalysisRequest(
        battery_level=battery_level,
        battery_trend="stable",
        biological_context=BiologicalContext(
            hrv_status=5.0,
            rhr_status=-3.0,
            sleep_deep=90,
            sleep_rem=75,
            respiratory_rate=15.0,
            steps=6400,
            active_calories=310.0,
        ),
        environmental_context=EnvironmentalContext(
            pressure_trend=pressure_trend,
            humidity=humidity,
            feels_like=21.5,
            uv_index=3.0,
            weather_code=1,
        ),
        user_context=UserContext(
            active_tags=tags if tags is not None else ["work"],
            time_of_day=time_of_day,
            language=language,
        ),
    )


@pytest.fixture
def health_data() -> dict[str, Any]:
    return _make_health_data()


@pytest.fixture
def weather() -> dict[str, Any]:
    return _make_weather()


@pytest.fixture
def analysis_request() -> AIAnalysisRequest:
    return _make_request()


@pytest.fixture
def make_health_data():
    """Factory: health data with keyword overrides per section."""
    return _make_health_data


@pytest.fixture
def make_weather():
    return _make_weather


@pytest.fixture
def make_request():
    """Factory: AIAnalysisRequest with the commonly varied fields exposed."""
    return _make_request


# ---------------------------------------------------------------------------
# Focus areas
# ---------------------------------------------------------------------------

@pytest.fixture
def focus_registry() -> FocusAreaRegistry:
    """Registry loaded from the shipped focus area YAML files."""
    reg = FocusAreaRegistry()
    load_focus_directory(FOCUS_DIR, reg)
    return reg


# ---------------------------------------------------------------------------
# LLM
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_provider():
    from tempo.core.llm.providers.mock import MockProvider

    return MockProvider()


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def cache_db():
    """Create an in-memory CacheDatabase for testing."""
    from tempo.core.storage.database import CacheDatabase

    db = CacheDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def field_encryptor():
    """Create a FieldEncryptor with a test key."""
    from cryptography.fernet import Fernet

    from tempo.core.storage.encryption import FieldEncryptor

    return FieldEncryptor(Fernet.generate_key().decode())


@pytest.fixture
def cache_repository(cache_db, field_encryptor):
    """Create an encrypted CacheRepository backed by in-memory SQLite."""
    from tempo.core.storage.repository import CacheRepository

    return CacheRepository(cache_db, field_encryptor)
