"""MCP Resources for focus area discovery."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from fastmcp import FastMCP

if TYPE_CHECKING:
    from tempo.core.focus.registry import FocusAreaRegistry


def register_focus_area_resources(mcp: FastMCP, registry: FocusAreaRegistry) -> None:
    """Register focus area discovery resources on the MCP server."""

    @mcp.resource("focus://wellness/registry")
    def focus_area_registry_resource() -> str:
        """Discover the focus areas a user can select for analysis."""
        areas = registry.all()
        return json.dumps(
            {
                "domain": "wellness",
                "focus_area_count": len(areas),
                "focus_areas": [
                    {
                        "tag": a.tag,
                        "version": a.version,
                        "display_name": a.display_name,
                        "icon": a.icon,
                        "analysis_weight": a.analysis_weight,
                        "environmental_factors": a.environmental_factors,
                        "priority_metrics": a.priority_metrics,
                    }
                    for a in areas
                ],
            },
            indent=2,
            ensure_ascii=False,
        )
