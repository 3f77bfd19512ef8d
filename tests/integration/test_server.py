"""Integration tests for the Tempo Wellness Advisor MCP server."""

from __future__ import annotations

import asyncio
import json

import pytest
from cryptography.fernet import Fernet
from fastmcp import Client

from tempo.core.llm.providers.mock import MockProvider
from tempo.core.server.app import VERSION, create_app


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


ALL_EXPECTED_TOOLS = [
    "health_check",
    "wellness_analysis",
    "static_wellness_analysis",
    "ai_analysis",
    "environment_advice",
    "battery_status",
    "clear_analysis_cache",
    "analysis_cost_report",
]


@pytest.fixture
def client():
    """Create an MCP client connected to a fresh server (mock LLM, no persistence)."""
    return Client(create_app())


def test_server_starts_and_lists_tools(client):
    """Server should start and expose all registered tools."""
    async def _check():
        async with client:
            tools = await client.list_tools()
            tool_names = [t.name for t in tools]
            for expected in ALL_EXPECTED_TOOLS:
                assert expected in tool_names, f"Missing tool: {expected}"
    _run(_check())


def test_health_check_returns_ok(client):
    """health_check tool should return status ok."""
    async def _check():
        async with client:
            result = await client.call_tool("health_check", {})
            status = json.loads(result.content[0].text)
            assert status["status"] == "ok"
            assert status["version"] == VERSION
            assert status["focus_areas_loaded"] == 6
            assert status["llm_provider"] == "mock"
            assert status["data_source"] == "mock"
            assert status["persistence_enabled"] is False
    _run(_check())


def test_provider_override_is_reported():
    """An injected provider is used for analysis and named in health_check."""
    provider = MockProvider()

    async def _check():
        async with Client(create_app(provider_override=provider)) as client:
            status = json.loads((await client.call_tool("health_check", {})).content[0].text)
            assert status["llm_provider"] == "MockProvider"
            await client.call_tool("wellness_analysis", {"language": "en"})
    _run(_check())
    assert provider.call_count == 1
    assert "## Essential Data" in provider.last_user_message


def test_focus_area_registry_resource(client):
    """The focus area registry resource lists every shipped focus area."""
    async def _check():
        async with client:
            contents = await client.read_resource("focus://wellness/registry")
            data = json.loads(contents[0].text)
            assert data["domain"] == "wellness"
            assert data["focus_area_count"] == 6
            tags = {a["tag"] for a in data["focus_areas"]}
            assert tags == {"work", "beauty", "diet", "sleep", "fitness", "chill"}
    _run(_check())


def test_prompts(client):
    """Both prompts are registered and render in the requested language."""
    async def _check():
        async with client:
            prompts = {p.name for p in await client.list_prompts()}
            assert {"daily_wellness_prompt", "focus_review_prompt"} <= prompts

            daily = await client.get_prompt("daily_wellness_prompt", {"language": "en"})
            assert "wellness_analysis" in daily.messages[0].content.text

            focus = await client.get_prompt("focus_review_prompt", {"tags": "fitness,diet"})
            assert 'focus_tags set to "fitness,diet"' in focus.messages[0].content.text
    _run(_check())


def test_persistent_encrypted_cache_survives_restart(monkeypatch, tmp_path, make_request):
    """With DB_PATH and ENCRYPTION_KEY set, cached analyses outlive the server."""
    monkeypatch.setenv("DB_PATH", str(tmp_path / "cache.db"))
    monkeypatch.setenv("ENCRYPTION_KEY", Fernet.generate_key().decode())
    request_json = make_request().model_dump_json(by_alias=True)

    async def _first():
        async with Client(create_app()) as client:
            await client.call_tool("ai_analysis", {"request_json": request_json})
            status = json.loads((await client.call_tool("health_check", {})).content[0].text)
            assert status["persistence_enabled"] is True
            assert status["cache_entries_stored"] == 1

    async def _second():
        async with Client(create_app()) as client:
            result = await client.call_tool("ai_analysis", {"request_json": request_json})
            payload = json.loads(result.content[0].text)
            assert payload["cached"] is True
            assert payload["cacheLayer"] == "persistent"

    _run(_first())
    _run(_second())


def test_bad_encryption_key_falls_back_to_memory(monkeypatch, tmp_path):
    """An invalid key disables persistence instead of failing startup."""
    monkeypatch.setenv("DB_PATH", str(tmp_path / "cache.db"))
    monkeypatch.setenv("ENCRYPTION_KEY", "not-a-fernet-key")

    async def _check():
        async with Client(create_app()) as client:
            status = json.loads((await client.call_tool("health_check", {})).content[0].text)
            assert status["persistence_enabled"] is False
    _run(_check())
