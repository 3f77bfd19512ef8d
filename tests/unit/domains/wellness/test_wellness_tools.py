"""Unit tests for the wellness and cache MCP tools."""

from __future__ import annotations

import asyncio
import json

import pytest
from fastmcp import Client

from tempo.core.server.app import create_app


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _payload(result) -> dict:
    """Decode the JSON text a tool returned."""
    return json.loads(result.content[0].text)


def _call(client, tool: str, args: dict | None = None) -> dict:
    async def _go():
        async with client:
            return _payload(await client.call_tool(tool, args or {}))
    return _run(_go())


def _call_many(client, calls: list[tuple[str, dict]]) -> list[dict]:
    """Several calls on one connection (the server keeps its state)."""
    async def _go():
        async with client:
            return [_payload(await client.call_tool(tool, args)) for tool, args in calls]
    return _run(_go())


@pytest.fixture
def client():
    return Client(create_app())


@pytest.fixture
def request_json(make_request):
    """Factory: camelCase JSON for an AI analysis request."""
    def _build(**kwargs) -> str:
        return make_request(**kwargs).model_dump_json(by_alias=True)
    return _build


# ---------------------------------------------------------------------------
# wellness_analysis / static_wellness_analysis
# ---------------------------------------------------------------------------

class TestWellnessAnalysis:
    def test_defaults_use_mock_data_and_ai(self, client):
        payload = _call(client, "wellness_analysis", {"focus_tags": "work,sleep"})

        assert payload["success"] is True
        assert payload["data_source"] == "mock"
        data = payload["data"]
        assert data["source"] == "hybrid"
        assert data["staticAnalysis"]["batteryState"] == "high"
        assert data["aiAnalysis"]["headline"]["title"] == "Steady energy today"
        assert "battery" in data

    def test_static_only_with_explicit_data(self, client, health_data, weather):
        payload = _call(
            client,
            "wellness_analysis",
            {
                "health_data": json.dumps(health_data),
                "weather_data": json.dumps(weather),
                "language": "en",
                "include_ai": False,
            },
        )
        data = payload["data"]
        assert data["source"] == "static_only"
        assert data["aiAnalysis"] is None
        assert data["staticAnalysis"]["energyLevel"] == pytest.approx(73.75, abs=0.06)
        assert data["message"].startswith("You're fully charged")

    def test_focus_tags_as_json_array(self, client):
        payload = _call(client, "wellness_analysis", {"focus_tags": '["beauty"]'})
        assert payload["success"] is True

    @pytest.mark.parametrize(
        "args, fragment",
        [
            ({"health_data": "not json"}, "health_data must be a valid JSON object"),
            ({"weather_data": "[1, 2]"}, "weather_data must be a JSON object"),
            ({"focus_tags": "work,gaming"}, "Unknown focus tags: gaming"),
            ({"language": "fr"}, "language must be one of"),
            ({"user_mode": "pro"}, "user_mode must be one of"),
            ({"previous_energy": 120}, "previous_energy must be between 0 and 100"),
        ],
    )
    def test_validation_errors(self, client, args, fragment):
        payload = _call(client, "wellness_analysis", args)
        assert payload["success"] is False
        assert payload["code"] == "VALIDATION_ERROR"
        assert fragment in payload["error"]

    def test_non_numeric_pressure_reads_as_missing(self, client, health_data, make_weather):
        weather = make_weather(pressure_hpa="n/a", previous_pressure_hpa="unknown")
        payload = _call(
            client,
            "wellness_analysis",
            {
                "health_data": json.dumps(health_data),
                "weather_data": json.dumps(weather),
                "language": "en",
            },
        )

        assert payload["success"] is True
        data = payload["data"]
        assert data["source"] == "hybrid"
        assert data["staticAnalysis"]["energyLevel"] == pytest.approx(73.75, abs=0.06)
        assert "pressure" not in [a["type"] for a in data["environmentAdvice"]]

    def test_static_tool(self, client):
        payload = _call(client, "static_wellness_analysis", {"language": "en"})
        assert payload["data"]["source"] == "static_only"
        assert payload["data"]["staticAnalysis"]["basicMetrics"]["stress"] == 100


# ---------------------------------------------------------------------------
# ai_analysis
# ---------------------------------------------------------------------------

class TestAIAnalysisTool:
    def test_fresh_then_cached(self, client, request_json):
        first, second = _call_many(
            client,
            [
                ("ai_analysis", {"request_json": request_json()}),
                ("ai_analysis", {"request_json": request_json()}),
            ],
        )
        assert first["success"] is True
        assert first["cached"] is False
        assert first["data"]["dataQuality"]["healthDataCompleteness"] == 100
        assert second["cached"] is True
        assert second["cacheLayer"] == "memory"

    def test_out_of_range_battery(self, client, request_json):
        raw = json.loads(request_json())
        raw["batteryLevel"] = 150
        payload = _call(client, "ai_analysis", {"request_json": json.dumps(raw)})
        assert payload["code"] == "VALIDATION_ERROR"
        assert "batteryLevel" in payload["error"]

    def test_missing_request(self, client):
        payload = _call(client, "ai_analysis", {"request_json": ""})
        assert payload["code"] == "VALIDATION_ERROR"

    def test_budget_exceeded(self, monkeypatch, request_json):
        monkeypatch.setenv("DAILY_BUDGET_USD", "0.01")
        first, second = _call_many(
            Client(create_app()),
            [
                ("ai_analysis", {"request_json": request_json()}),
                ("ai_analysis", {"request_json": request_json(battery_level=20)}),
            ],
        )
        assert first["success"] is True
        assert second == {
            "success": False,
            "error": "Daily AI budget exhausted; try again tomorrow",
            "code": "BUDGET_EXCEEDED",
        }

    def test_rate_limited(self, monkeypatch, request_json):
        monkeypatch.setenv("RATE_LIMIT_REQUESTS", "1")
        _, second = _call_many(
            Client(create_app()),
            [
                ("ai_analysis", {"request_json": request_json()}),
                ("ai_analysis", {"request_json": request_json(battery_level=20)}),
            ],
        )
        assert second["code"] == "RATE_LIMIT_EXCEEDED"
        assert second["retry_after"] >= 1


# ---------------------------------------------------------------------------
# environment_advice / battery_status
# ---------------------------------------------------------------------------

class TestEnvironmentAdviceTool:
    def test_mock_conditions(self, client):
        payload = _call(client, "environment_advice", {"language": "en"})
        data = payload["data"]
        assert data["pressureTrend"] == "falling"
        assert [a["type"] for a in data["advice"]] == ["air_quality", "uv", "pressure"]

    def test_explicit_conditions(self, client):
        payload = _call(
            client,
            "environment_advice",
            {
                "weather_data": json.dumps({"temperature_c": 35, "pressure_hpa": 1013}),
                "air_quality": json.dumps({"aqi": 120}),
                "language": "en",
            },
        )
        data = payload["data"]
        assert data["pressureTrend"] == "stable"
        assert [a["type"] for a in data["advice"]] == ["air_quality", "temperature"]
        assert data["advice"][0]["message"].startswith("Air quality is poor")

    def test_non_numeric_pressure_is_stable(self, client):
        payload = _call(
            client,
            "environment_advice",
            {
                "weather_data": json.dumps({"pressure_hpa": "n/a", "previous_pressure_hpa": 1020}),
                "air_quality": json.dumps({"aqi": 20}),
            },
        )
        assert payload["success"] is True
        assert payload["data"]["pressureTrend"] == "stable"


class TestBatteryStatusTool:
    def test_drain_since_waking(self, client):
        payload = _call(
            client,
            "battery_status",
            {
                "sleep": json.dumps({"duration_hours": 8, "quality": 1.0}),
                "hrv": json.dumps({"average_ms": 50, "baseline_ms": 50}),
                "hours_elapsed": 2,
            },
        )
        data = payload["data"]
        assert data["morningCharge"] == 100.0
        assert data["currentLevel"] == 95.0
        assert data["drainRate"] == -2.5
        assert data["state"] == "high"

    def test_defaults_from_provider(self, client):
        payload = _call(client, "battery_status", {})
        assert payload["success"] is True
        assert payload["data"]["morningCharge"] > 0

    @pytest.mark.parametrize(
        "args", [{"stress_level": 11}, {"hours_elapsed": -1}, {"user_mode": "pro"}]
    )
    def test_validation(self, client, args):
        assert _call(client, "battery_status", args)["code"] == "VALIDATION_ERROR"


# ---------------------------------------------------------------------------
# Cache + cost tools
# ---------------------------------------------------------------------------

class TestCacheTools:
    def test_cost_report_and_clear(self, client, request_json):
        _, report, cleared, after = _call_many(
            client,
            [
                ("ai_analysis", {"request_json": request_json()}),
                ("analysis_cost_report", {}),
                ("clear_analysis_cache", {}),
                ("ai_analysis", {"request_json": request_json()}),
            ],
        )
        assert report["data"]["total_cost"] == pytest.approx(0.0375)
        assert report["data"]["active_users"] == 1
        assert report["data"]["daily_budget_usd"] == 0.10
        assert cleared["data"]["removed"] == 1
        assert after["cached"] is False

    def test_bad_date(self, client):
        payload = _call(client, "analysis_cost_report", {"date": "15/06/2025"})
        assert payload["code"] == "VALIDATION_ERROR"

    def test_empty_day(self, client):
        payload = _call(client, "analysis_cost_report", {"date": "2020-01-01"})
        assert payload["data"]["total_cost"] == 0.0
        assert payload["data"]["active_users"] == 0
