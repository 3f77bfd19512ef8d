"""MCP tools for the analysis cache and AI spend.

Clearing the cache forces the next analysis for every context to call the
model again; it does not reset anyone's daily budget.
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING

from fastmcp import FastMCP

from tempo.core.errors import AppError, ValidationError, create_error_response

if TYPE_CHECKING:
    from tempo.core.cache.analysis_cache import IntelligentAnalysisCache
    from tempo.core.cache.cost_tracker import CostTracker

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def register_cache_tools(
    mcp: FastMCP,
    cache: IntelligentAnalysisCache,
    cost_tracker: CostTracker,
) -> None:
    """Register cache and cost management tools on the MCP server."""

    @mcp.tool
    async def clear_analysis_cache() -> str:
        """Delete every cached AI analysis (memory and persistent layers)."""
        removed = cache.clear()
        logger.info("Cleared analysis cache via tool (%d keys)", removed)
        return json.dumps({"success": True, "data": {"removed": removed, "stats": cache.stats()}})

    @mcp.tool
    async def analysis_cost_report(date: str = "") -> str:
        """Report AI spend for one day.

        Args:
            date: Day to report as YYYY-MM-DD (UTC). Defaults to today.
        """
        try:
            if date and not _DATE_RE.match(date):
                raise ValidationError("date must be formatted as YYYY-MM-DD")
            report = cost_tracker.report(date or None)
        except AppError as exc:
            return json.dumps(create_error_response(exc))
        report["daily_budget_usd"] = cost_tracker.daily_budget
        report["cache"] = cache.stats()
        return json.dumps({"success": True, "data": report})
