"""Focus area loader — reads YAML definitions from disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from tempo.core.focus.models import FocusArea, FocusGuidance
from tempo.core.focus.registry import FocusAreaRegistry

logger = logging.getLogger(__name__)


def load_focus_directory(directory: str | Path, registry: FocusAreaRegistry) -> int:
    """Load all YAML focus area definitions from a directory (recursively).

    Returns the number of focus areas loaded.
    Skips files starting with underscore (like _schema.yaml).
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning("Focus area directory does not exist: %s", directory)
        return 0

    count = 0
    for path in sorted(directory.rglob("*.yaml")):
        if path.name.startswith("_"):
            continue
        try:
            area = load_focus_file(path)
            registry.register(area)
            count += 1
            logger.info("Loaded focus area: %s (v%s)", area.tag, area.version)
        except Exception:
            logger.exception("Failed to load focus area from %s", path)
    return count


def load_focus_file(path: Path) -> FocusArea:
    """Parse a YAML file into a FocusArea instance."""
    with open(path, encoding="utf-8") as f:
        data: dict[str, Any] = yaml.safe_load(f)

    guidance = data.get("guidance", {})
    display_name = data.get("display_name", {})
    if isinstance(display_name, str):
        display_name = {"en": display_name}

    return FocusArea(
        tag=data["tag"],
        version=str(data["version"]),
        display_name=display_name,
        icon=data.get("icon", ""),
        analysis_weight=float(data.get("analysis_weight", 1.0)),
        guidance=FocusGuidance(
            ja=(guidance.get("ja") or "").strip(),
            en=(guidance.get("en") or "").strip(),
        ),
        environmental_factors=data.get("environmental_factors", []),
        priority_metrics=data.get("priority_metrics", []),
    )
