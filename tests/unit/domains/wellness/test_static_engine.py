"""Unit tests for the deterministic static analysis.

Covers the component scores, the weather adjustment, the energy blend and
the fixed messages used when no AI analysis is available.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from tempo.domains.wellness.domain_logic import static_engine
from tempo.domains.wellness.domain_logic.models import StaticAnalysis, battery_state_for
from tempo.domains.wellness.domain_logic.static_engine import (
    StaticAnalysisError,
    compute_activity_score,
    compute_energy_level,
    compute_sleep_score,
    compute_stress_score,
    data_completeness,
    environmental_adjustment,
)


# ---------------------------------------------------------------------------
# Component scores
# ---------------------------------------------------------------------------

class TestSleepScore:
    def test_full_night(self):
        assert compute_sleep_score({"duration_hours": 8, "quality": 1.0}) == 100.0

    def test_duration_capped_at_eight_hours(self):
        assert compute_sleep_score({"duration_hours": 11, "quality": 0.0}) == 70.0

    def test_missing_values_use_neutral_defaults(self):
        # 7h -> 61.25, quality 0.7 -> 21
        assert compute_sleep_score({}) == pytest.approx(82.25)

    def test_quality_is_clamped(self):
        assert compute_sleep_score({"duration_hours": 0, "quality": 3.0}) == 30.0


class TestActivityScore:
    def test_goal_reached(self):
        assert compute_activity_score({"steps": 10000, "active_minutes": 30}) == 100.0

    def test_partial(self):
        assert compute_activity_score({"steps": 5000, "active_minutes": 15}) == pytest.approx(50.0)

    def test_non_numeric_falls_back(self):
        score = compute_activity_score({"steps": "lots", "active_minutes": None})
        assert score == pytest.approx(30.0 + 20 / 30 * 40)


class TestStressScore:
    @pytest.mark.parametrize(
        "hrv_ms, expected",
        [
            (50, 100.0),  # at baseline
            (40, 100.0),  # 0.8x, still ideal
            (70, 90.0),  # 1.4x
            (20, 50.0),  # 0.4x
            (5, 30.0),  # floor
        ],
    )
    def test_ratio_bands(self, hrv_ms, expected):
        assert compute_stress_score({"average_ms": hrv_ms}) == pytest.approx(expected)

    def test_missing_hrv_is_baseline(self):
        assert compute_stress_score({}) == 100.0


class TestEnvironmentalAdjustment:
    def test_no_weather(self):
        assert environmental_adjustment(None) == 0.0

    def test_comfortable_weather(self, weather):
        assert environmental_adjustment(weather) == 0.0

    def test_all_penalties(self, make_weather):
        harsh = make_weather(temperature_c=2.0, humidity=20.0, pressure_hpa=990.0)
        assert environmental_adjustment(harsh) == -12.0

    def test_humid(self, make_weather):
        assert environmental_adjustment(make_weather(humidity=90.0)) == -2.0


def test_energy_blend():
    assert compute_energy_level(100, 100, 100) == 100.0
    assert compute_energy_level(60, 50, 40) == pytest.approx(53.0)
    assert compute_energy_level(10, 0, 0, adjustment=-12) == 0.0


@pytest.mark.parametrize(
    "level, state",
    [(0, "critical"), (19.9, "critical"), (20, "low"), (39.9, "low"), (40, "medium"),
     (69.9, "medium"), (70, "high"), (100, "high")],
)
def test_battery_state_thresholds(level, state):
    assert battery_state_for(level) == state


# ---------------------------------------------------------------------------
# Full analysis
# ---------------------------------------------------------------------------

class TestAnalyze:
    def test_scores(self, health_data, weather):
        now = datetime(2025, 6, 15, 8, 0, tzinfo=timezone.utc)
        result = static_engine.analyze(health_data, weather, now=now)

        assert result.sleep_score == 67.5
        assert result.activity_score == 50.0
        assert result.stress_score == 100.0
        assert result.energy_level == pytest.approx(73.75, abs=0.06)
        assert result.battery_state == "high"
        assert result.generated_at == now
        assert not result.is_fallback

    def test_weather_lowers_energy(self, health_data, make_weather):
        calm = static_engine.analyze(health_data, None)
        stormy = static_engine.analyze(health_data, make_weather(pressure_hpa=985.0))
        assert stormy.energy_level == pytest.approx(calm.energy_level - 4.0, abs=0.1)

    def test_empty_health_data_raises(self):
        with pytest.raises(StaticAnalysisError):
            static_engine.analyze({})

    def test_to_dict_wire_shape(self, health_data):
        data = static_engine.analyze(health_data).to_dict()
        assert set(data) == {"energyLevel", "batteryState", "basicMetrics", "generatedAt"}
        assert data["basicMetrics"] == {"sleep": 68, "activity": 50, "stress": 100}

    def test_fallback(self):
        fallback = StaticAnalysis.fallback()
        assert fallback.is_fallback
        assert fallback.energy_level == 50.0
        assert fallback.battery_state == "medium"


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

class TestMessages:
    def test_basic_message_languages(self):
        assert static_engine.basic_message("high", "en").startswith("You're fully charged")
        assert "エネルギー" in static_engine.basic_message("low", "ja")

    def test_suggestions_target_weak_scores(self, health_data):
        analysis = static_engine.analyze(health_data)
        suggestions = static_engine.improvement_suggestions(analysis, "en")
        assert suggestions == ["Try getting to bed 30 minutes earlier tonight."]

    def test_suggestions_keep_when_all_good(self, make_health_data):
        data = make_health_data(
            sleep={"duration_hours": 8, "quality": 0.9},
            activity={"steps": 9000, "active_minutes": 30},
        )
        analysis = static_engine.analyze(data)
        assert static_engine.improvement_suggestions(analysis, "en") == [
            "Keep up your current rhythm."
        ]


class TestDataCompleteness:
    def test_partial(self, analysis_request):
        # pressure trend of 0 counts as missing
        assert data_completeness(analysis_request) == 83.3

    def test_complete(self, make_request):
        assert data_completeness(make_request(pressure_trend=-1.5)) == 100.0
