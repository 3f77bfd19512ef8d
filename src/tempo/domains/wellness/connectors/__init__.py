"""Wellness data connectors — abstraction layer for biometric and weather input."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class WellnessDataProvider(Protocol):
    """Abstract interface for the data an analysis needs.

    Tools call these methods without knowing whether the data comes from a
    phone's health store, a wearable export, or the mock generators.
    """

    async def get_health_data(self) -> dict[str, Any]:
        """Sleep, HRV, resting heart rate and activity for the current day."""
        ...

    async def get_weather(self) -> dict[str, Any]:
        """Latest weather observation, including the previous pressure reading."""
        ...

    async def get_air_quality(self) -> dict[str, Any] | None:
        """Latest air quality reading (AQI, PM2.5), if available."""
        ...

    @property
    def data_source(self) -> str:
        """Label for the active data source, e.g. 'mock'."""
        ...

    def get_provenance(self) -> dict[str, str]:
        """Provenance metadata for tool responses."""
        ...
