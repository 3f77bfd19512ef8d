"""Wire schemas for AI analysis requests and responses.

Field names are snake_case in Python and camelCase on the wire
(``batteryLevel``, ``aiActionSuggestions``); both spellings are accepted
on input.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tempo.domains.wellness.domain_logic.models import (
    ActionType,
    BatteryTrend,
    Difficulty,
    FocusTag,
    ImpactLevel,
    Language,
    TimeOfDay,
    Urgency,
    UserMode,
)


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

class BiologicalContext(WireModel):
    hrv_status: float  # ms above/below baseline
    rhr_status: float  # bpm above/below baseline
    sleep_deep: int = Field(ge=0)  # minutes
    sleep_rem: int = Field(ge=0)  # minutes
    respiratory_rate: float = Field(gt=0)
    steps: int = Field(ge=0)
    active_calories: float = Field(ge=0)


class EnvironmentalContext(WireModel):
    pressure_trend: float  # hPa change
    humidity: float = Field(ge=0, le=100)
    feels_like: float
    uv_index: float = Field(ge=0, le=11)
    weather_code: int


class UserContext(WireModel):
    active_tags: list[FocusTag] = Field(default_factory=list)
    time_of_day: TimeOfDay
    language: Language = "ja"
    user_mode: UserMode = "standard"


class AIAnalysisRequest(WireModel):
    battery_level: float = Field(ge=0, le=100)
    battery_trend: BatteryTrend
    biological_context: BiologicalContext
    environmental_context: EnvironmentalContext
    user_context: UserContext


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------

class Headline(WireModel):
    title: str
    subtitle: str
    impact_level: ImpactLevel
    confidence: float = Field(ge=0, le=100)


class TagInsight(WireModel):
    tag: str
    icon: str = ""
    message: str
    urgency: Urgency = "info"


class ActionSuggestion(WireModel):
    title: str
    description: str
    action_type: ActionType
    estimated_time: str
    difficulty: Difficulty


class DataQuality(WireModel):
    health_data_completeness: float = Field(ge=0, le=100)
    weather_data_age: float = Field(ge=0)  # minutes
    analysis_timestamp: str


class AIAnalysisResponse(WireModel):
    headline: Headline
    energy_comment: str
    tag_insights: list[TagInsight] = Field(default_factory=list)
    ai_action_suggestions: list[ActionSuggestion] = Field(default_factory=list)
    detail_analysis: str | None = None
    # Filled in by the analysis service when the model omits them.
    data_quality: DataQuality | None = None
    generated_at: str | None = None
