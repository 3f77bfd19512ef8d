"""Focus area registry — in-memory index of loaded focus tags."""

from __future__ import annotations

import logging

from tempo.core.focus.models import FocusArea

logger = logging.getLogger(__name__)

DEFAULT_ICON = "circle"


class FocusAreaNotFoundError(LookupError):
    """Raised when a focus tag is not registered."""


class FocusAreaRegistry:
    """In-memory registry of all loaded focus area definitions."""

    def __init__(self) -> None:
        self._areas: dict[str, FocusArea] = {}

    def register(self, area: FocusArea) -> None:
        """Add a focus area; tags are unique."""
        if area.tag in self._areas:
            raise ValueError(f"Duplicate focus tag registered: {area.tag!r}")
        self._areas[area.tag] = area

    def get(self, tag: str) -> FocusArea | None:
        return self._areas.get(tag)

    def require(self, tag: str) -> FocusArea:
        area = self._areas.get(tag)
        if area is None:
            raise FocusAreaNotFoundError(f"Unknown focus tag: {tag!r}")
        return area

    def icon_for(self, tag: str) -> str:
        area = self._areas.get(tag)
        return area.icon if area else DEFAULT_ICON

    def weighted_order(self, tags: list[str]) -> list[FocusArea]:
        """Known areas for ``tags``, heaviest first (ties keep input order)."""
        areas = [self._areas[t] for t in dict.fromkeys(tags) if t in self._areas]
        unknown = [t for t in tags if t not in self._areas]
        if unknown:
            logger.warning("Ignoring unknown focus tags: %s", unknown)
        return sorted(areas, key=lambda a: -a.analysis_weight)

    def tags(self) -> list[str]:
        return list(self._areas)

    def all(self) -> list[FocusArea]:
        """Return all registered focus areas."""
        return list(self._areas.values())

    def __len__(self) -> int:
        return len(self._areas)
