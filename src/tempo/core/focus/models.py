"""Focus area data models — parsed from YAML definitions."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class FocusGuidance:
    """Per-language guidance text injected into the analysis prompt."""

    ja: str
    en: str

    def for_language(self, language: str) -> str:
        return self.ja if language == "ja" else self.en


@dataclass
class FocusArea:
    """A user-selectable focus tag (work, beauty, diet, sleep, fitness, chill).

    ``analysis_weight`` orders tags when several are active; heavier tags
    lead the prompt's focus section.
    """

    tag: str
    version: str
    display_name: dict[str, str]
    icon: str
    analysis_weight: float
    guidance: FocusGuidance
    environmental_factors: list[str] = field(default_factory=list)
    priority_metrics: list[str] = field(default_factory=list)

    def name_for(self, language: str) -> str:
        return self.display_name.get(language) or self.display_name.get("en") or self.tag
