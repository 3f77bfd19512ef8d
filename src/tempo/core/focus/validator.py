"""Focus area YAML validator — ensures definitions are well-formed."""

from __future__ import annotations

import logging
from pathlib import Path

from tempo.core.focus.loader import load_focus_file
from tempo.core.focus.models import FocusArea

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ["tag", "version", "icon"]


def validate_focus_file(path: Path) -> tuple[FocusArea | None, list[str]]:
    """Validate a single focus area YAML file.

    Returns: (focus_area_or_none, errors)
    """
    errors: list[str] = []

    try:
        area = load_focus_file(path)
    except Exception as exc:
        return None, [f"{path}: Failed to load ({exc})"]

    for field_name in REQUIRED_FIELDS:
        if not getattr(area, field_name, None):
            errors.append(f"{path}: Missing or empty required field '{field_name}'")

    if not area.display_name:
        errors.append(f"{path}: Missing display_name")

    for language in ("ja", "en"):
        if not getattr(area.guidance, language):
            errors.append(f"{path}: Missing '{language}' guidance")

    if area.analysis_weight <= 0:
        errors.append(f"{path}: analysis_weight must be positive")

    if area.version and not all(c.isdigit() or c == "." for c in area.version):
        errors.append(f"{path}: Version '{area.version}' doesn't look like a version number")

    name = path.name
    if not (name == f"{area.tag}.yaml" or name.startswith(f"{area.tag}.")):
        errors.append(f"{path}: Filename '{name}' should match focus tag '{area.tag}'")

    return area, errors


def validate_focus_directory(directory: str | Path) -> tuple[int, list[str]]:
    """Validate all focus area YAML files in a directory (recursively).

    Returns: (valid_count, errors)
    """
    directory = Path(directory)
    if not directory.is_dir():
        return 0, [f"Focus area directory not found: {directory}"]

    yaml_files = sorted(p for p in directory.rglob("*.yaml") if not p.name.startswith("_"))
    if not yaml_files:
        return 0, [f"No focus area YAML files found in {directory}"]

    errors: list[str] = []
    seen: dict[str, Path] = {}
    loaded = 0

    for path in yaml_files:
        area, file_errors = validate_focus_file(path)
        if file_errors:
            errors.extend(file_errors)
            continue

        assert area is not None  # for type checkers
        loaded += 1
        if area.tag in seen:
            errors.append(f"{path}: Duplicate tag '{area.tag}' (already defined in {seen[area.tag]})")
        else:
            seen[area.tag] = path

    for err in errors:
        logger.error("%s", err)
    return loaded, errors
