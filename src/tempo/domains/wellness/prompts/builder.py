"""Prompt construction for AI wellness analysis.

The user message is assembled from four sections joined by blank lines:
persona, today's focus guidance, contextual data, output format. The
enhanced variant appends today's-try opportunities and a compact JSON
summary of the essential numbers.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from tempo.domains.wellness.domain_logic.opportunities import (
    analyze_opportunities,
    render_opportunities,
)

if TYPE_CHECKING:
    from tempo.core.focus.registry import FocusAreaRegistry
    from tempo.domains.wellness.domain_logic.ai_models import AIAnalysisRequest

MAX_COMPACT_TAGS = 3


_PERSONA = {
    "ja": """あなたは経験豊富なヘルスアドバイザーです。

基本原則:
1. ユーザーの健康データを客観的に分析し、実用的な提案を行う
2. 批判せず、改善点を明確に示す
3. 環境要因（気圧、湿度等）と体調の関連を科学的に説明する
4. 具体的で実行可能な提案を行う
5. 2-15分で実行可能な行動を優先する

表現の原則:
- エネルギーレベルを数値で明確に示す
- 具体的な改善方法を提案する
- データに基づいた客観的な分析を行う""",
    "en": """You are an experienced health advisor.

Core Principles:
1. Analyze health data objectively and provide practical suggestions
2. Never criticize, clearly indicate improvement areas
3. Scientifically explain relationships between environmental factors and physical condition
4. Make specific and actionable recommendations
5. Prioritize actions that can be completed in 2-15 minutes

Expression Guidelines:
- Clearly indicate energy levels numerically
- Suggest specific improvement methods
- Provide objective data-based analysis""",
}

_OUTPUT_FORMAT = {
    "ja": """## 出力形式

以下のJSON形式で、実用的な健康分析結果を生成してください：

{
  "headline": {
    "title": "今日の健康状態評価（30文字以内）",
    "subtitle": "最優先の推奨行動（50文字以内）",
    "impactLevel": "low|medium|high|critical",
    "confidence": 85
  },
  "energyComment": "エネルギー状態の客観的分析（100文字程度）",
  "tagInsights": [
    {
      "tag": "今日の重点分野（例: beauty）",
      "icon": "適切なSFシンボル名",
      "message": "データに基づく具体的な改善点（120文字以内）",
      "urgency": "info|warning|critical"
    }
  ],
  "aiActionSuggestions": [
    {
      "title": "推奨アクション（15文字以内）",
      "description": "具体的な方法と効果の説明（150文字以内）",
      "actionType": "rest|hydrate|exercise|focus|social|beauty",
      "estimatedTime": "5-15分",
      "difficulty": "easy|medium|hard"
    }
  ],
  "detailAnalysis": "データ分析結果と改善提案（200文字以内）"
}""",
    "en": """## Output Format

Please respond in the following JSON format:
{
  "headline": {
    "title": "Concise and empathetic title",
    "subtitle": "Specific action guidance",
    "impactLevel": "low|medium|high|critical",
    "confidence": 85
  },
  "energyComment": "Empathetic comment about energy state",
  "tagInsights": [
    {
      "tag": "focus_area_name",
      "icon": "sf_symbol_name",
      "message": "Specialist insight",
      "urgency": "info|warning|critical"
    }
  ],
  "aiActionSuggestions": [
    {
      "title": "Today's try suggestion",
      "description": "Detailed explanation and motivation",
      "actionType": "rest|hydrate|exercise|focus|social|beauty",
      "estimatedTime": "5 minutes",
      "difficulty": "easy|medium|hard"
    }
  ],
  "detailAnalysis": "Detailed explanation of environmental factors and health correlations"
}""",
}


def _lang(language: str) -> str:
    return "ja" if language == "ja" else "en"


def _signed(value: float, digits: int = 1) -> str:
    return f"{'+' if value > 0 else ''}{value:.{digits}f}"


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

def build_base_persona(language: str) -> str:
    return _PERSONA[_lang(language)]


def build_focus_guidance(tags: list[str], registry: FocusAreaRegistry, language: str) -> str:
    """Guidance for today's focus tags, heaviest tag first."""
    lang = _lang(language)
    header = "## 今日の専門分析対象" if lang == "ja" else "## Today's Focus Analysis"
    areas = registry.weighted_order(tags)

    if not areas:
        if lang == "ja":
            return f"{header}\n\n特定の分野は選択されていません。全体的なウェルネスを分析してください。"
        return f"{header}\n\nNo specific focus area selected. Analyze overall wellness."

    if len(areas) == 1:
        area = areas[0]
        label = f"（今日の分野: {area.tag}）" if lang == "ja" else f" (today's area: {area.tag})"
        return f"{header}{label}\n\n{area.guidance.for_language(lang)}"

    combo = " + ".join(a.tag for a in areas)
    label = f"（組み合わせ分析: {combo}）" if lang == "ja" else f" (combined analysis: {combo})"
    body = "\n\n".join(a.guidance.for_language(lang) for a in areas)
    return f"{header}{label}\n\n{body}"


def build_contextual_data(request: AIAnalysisRequest) -> str:
    bio = request.biological_context
    env = request.environmental_context
    user = request.user_context
    tags = ", ".join(user.active_tags) or "-"

    if _lang(user.language) == "ja":
        return f"""## 現在の状況

### エネルギー状態
- レベル: {request.battery_level:.1f}%
- 変化傾向: {request.battery_trend}

### 生物学的コンテキスト
- HRV状態: {_signed(bio.hrv_status)}ms (基準値からの差)
- 心拍数状態: {_signed(bio.rhr_status)}bpm (基準値からの差)
- 深い睡眠: {bio.sleep_deep}分
- REM睡眠: {bio.sleep_rem}分
- 呼吸数: {bio.respiratory_rate:.0f}回/分
- 歩数: {bio.steps:,}歩
- 消費カロリー: {bio.active_calories:.0f}kcal

### 環境コンテキスト
- 気圧変化: {_signed(env.pressure_trend)}hPa
- 湿度: {env.humidity:.0f}%
- 体感温度: {env.feels_like:.1f}°C
- UV指数: {env.uv_index:.1f}

### ユーザーコンテキスト
- 時間帯: {user.time_of_day}
- ユーザーモード: {user.user_mode}
- アクティブタグ: {tags}"""

    return f"""## Current Situation

### Energy
- Level: {request.battery_level:.1f}%
- Trend: {request.battery_trend}

### Biological Context
- HRV status: {_signed(bio.hrv_status)}ms (vs. baseline)
- Resting heart rate status: {_signed(bio.rhr_status)}bpm (vs. baseline)
- Deep sleep: {bio.sleep_deep} min
- REM sleep: {bio.sleep_rem} min
- Respiratory rate: {bio.respiratory_rate:.0f}/min
- Steps: {bio.steps:,}
- Active calories: {bio.active_calories:.0f}kcal

### Environmental Context
- Pressure change: {_signed(env.pressure_trend)}hPa
- Humidity: {env.humidity:.0f}%
- Feels like: {env.feels_like:.1f}°C
- UV index: {env.uv_index:.1f}

### User Context
- Time of day: {user.time_of_day}
- User mode: {user.user_mode}
- Active tags: {tags}"""


def build_output_format(language: str) -> str:
    return _OUTPUT_FORMAT[_lang(language)]


# ---------------------------------------------------------------------------
# Full prompts
# ---------------------------------------------------------------------------

def build_focus_area_prompt(request: AIAnalysisRequest, registry: FocusAreaRegistry) -> str:
    language = request.user_context.language
    return "\n\n".join(
        [
            build_base_persona(language),
            build_focus_guidance(list(request.user_context.active_tags), registry, language),
            build_contextual_data(request),
            build_output_format(language),
        ]
    )


def build_compact_appendix(request: AIAnalysisRequest) -> str:
    """Essential numbers as compact JSON, plus the response length budget."""
    bio = request.biological_context
    env = request.environmental_context
    essential = {
        "energy": round(request.battery_level),
        "trend": request.battery_trend,
        "tags": list(request.user_context.active_tags[:MAX_COMPACT_TAGS]),
        "time": request.user_context.time_of_day,
        "env": {
            "pressure": env.pressure_trend,
            "humidity": env.humidity,
            "temp": env.feels_like,
        },
        "bio": {
            "hrv": bio.hrv_status,
            "sleep": bio.sleep_deep + bio.sleep_rem,
            "activity": bio.steps,
        },
    }
    data = json.dumps(essential, ensure_ascii=False, separators=(",", ":"))
    if _lang(request.user_context.language) == "ja":
        return f"## 必須データ\n{data}\n\n回答は2000トークン以内で、JSONのみを返してください。"
    return f"## Essential Data\n{data}\n\nAnswer within 2000 tokens and return JSON only."


def build_enhanced_prompt(request: AIAnalysisRequest, registry: FocusAreaRegistry) -> str:
    language = request.user_context.language
    return "\n\n".join(
        [
            build_focus_area_prompt(request, registry),
            render_opportunities(analyze_opportunities(request), language),
            build_compact_appendix(request),
        ]
    )
