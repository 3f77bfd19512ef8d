"""MCP Prompts — pre-built interaction templates for daily wellness check-ins."""

from __future__ import annotations

from fastmcp import FastMCP


def register_wellness_prompts(mcp: FastMCP) -> None:
    """Register wellness domain MCP prompts."""

    @mcp.prompt()
    def daily_wellness_prompt(language: str = "ja") -> str:
        """Prompt template for a morning energy check-in."""
        if language == "ja":
            return """今日のコンディションを教えてください。

1. 今のエネルギーレベルと、その主な理由
2. 今日の天気や気圧が体調に与えそうな影響
3. 2〜15分でできる、今日試してみたいこと
4. 無理せず過ごすためのペース配分

wellness_analysis ツールを使って、データに基づいて答えてください。"""
        return """How am I doing today? Please cover:

1. My current energy level and the main reasons behind it
2. How today's weather and pressure are likely to affect me
3. Something I could try today that takes 2-15 minutes
4. How to pace myself so I don't overdo it

Use the wellness_analysis tool and base your answer on my data."""

    @mcp.prompt()
    def focus_review_prompt(tags: str = "work,sleep") -> str:
        """Prompt template for advice tailored to chosen focus areas."""
        return f"""I'm focusing on {tags} today. Please:

1. Run wellness_analysis with focus_tags set to "{tags}"
2. Explain what my data means for each focus area
3. Suggest one concrete action per focus area
4. Point out anything in the environment I should plan around

Keep it practical and encouraging."""
