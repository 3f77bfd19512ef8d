"""Concrete WellnessDataProvider implementations."""

from __future__ import annotations

from typing import Any

from tempo.domains.wellness.connectors.mock_data import (
    get_mock_air_quality,
    get_mock_health_data,
    get_mock_weather,
)


class MockWellnessDataProvider:
    """Uses mock data generators. Always available."""

    async def get_health_data(self) -> dict[str, Any]:
        return get_mock_health_data()

    async def get_weather(self) -> dict[str, Any]:
        return get_mock_weather()

    async def get_air_quality(self) -> dict[str, Any] | None:
        return get_mock_air_quality()

    @property
    def data_source(self) -> str:
        return "mock"

    def get_provenance(self) -> dict[str, str]:
        return {
            "data_source": self.data_source,
            "data_source_note": (
                "Using simulated health and weather data. "
                "Pass health_data and weather_data for real measurements."
            ),
        }
