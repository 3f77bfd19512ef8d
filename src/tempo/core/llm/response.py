"""Response parsing, schema validation and guardrail enforcement for AI output."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tempo.core.errors import AIServiceError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

REDACTION_NOTE = "[Removed: contains prohibited health guidance]"


# ---------------------------------------------------------------------------
# JSON extraction + structure validation
# ---------------------------------------------------------------------------

def extract_json_object(text: str) -> dict[str, Any]:
    """Pull the outermost JSON object out of model output.

    Models sometimes wrap JSON in prose or code fences; everything before the
    first ``{`` and after the last ``}`` is ignored.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise AIServiceError(
            "AI response did not contain a JSON object", code="INVALID_JSON_RESPONSE"
        )
    try:
        data = json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        raise AIServiceError(
            f"AI response is not valid JSON: {exc.msg}", code="INVALID_JSON_RESPONSE"
        ) from exc
    if not isinstance(data, dict):
        raise AIServiceError(
            "AI response JSON must be an object", code="INVALID_JSON_RESPONSE"
        )
    return data


def validate_structure(data: dict[str, Any], model: type[ModelT]) -> ModelT:
    """Validate parsed JSON against a pydantic model, reporting the first failure."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        path = ".".join(str(p) for p in first.get("loc", ()))
        raise AIServiceError(
            f"AI response missing required fields: {first.get('msg')} (field: {path})",
            code="INVALID_AI_RESPONSE_STRUCTURE",
        ) from None


# ---------------------------------------------------------------------------
# Guardrails
# ---------------------------------------------------------------------------

# Wellness advice may encourage habits; it must never diagnose, prescribe,
# dictate diets or predict disease.
PROHIBITED_INDICATORS: dict[str, tuple[str, ...]] = {
    "making medical diagnoses": (
        "you have been diagnosed",
        "you are suffering from",
        "you have a condition",
        "診断されます",
    ),
    "prescribing treatments": (
        "take this medication",
        "stop taking your medication",
        "i prescribe",
        "服用してください",
    ),
    "providing specific dietary plans": (
        "eat exactly",
        "your daily caloric intake should be",
        "follow this meal plan",
    ),
    "making disease predictions": (
        "you will develop",
        "this will lead to",
        "guaranteed to cure",
    ),
}

_EMOJI_RE = re.compile(
    "[\U0001F300-\U0001FAFF\U00002600-\U000027BF\U0001F1E6-\U0001F1FF]"
)


@dataclass
class GuardrailCheck:
    """Result of checking response text against the advice guardrails."""

    passed: bool
    flags: list[str] = field(default_factory=list)


def check_guardrails(texts: list[str]) -> GuardrailCheck:
    """Check user-facing strings for prohibited guidance and emoji."""
    flags: list[str] = []
    joined = "\n".join(texts).lower()

    for action, patterns in PROHIBITED_INDICATORS.items():
        for pattern in patterns:
            if pattern in joined:
                flags.append(f"prohibited_pattern_detected: {action} ('{pattern}')")

    if _EMOJI_RE.search(joined):
        flags.append("emoji_removed")

    passed = not any(f.startswith("prohibited_pattern") for f in flags)
    if flags:
        logger.warning("Guardrail flags on AI response: %s", flags)
    return GuardrailCheck(passed=passed, flags=flags)


def sanitize_text(text: str, guardrail_check: GuardrailCheck) -> str:
    """Redact sentences containing detected prohibited phrases and strip emoji."""
    if not guardrail_check.flags:
        return text

    sanitized = _EMOJI_RE.sub("", text)
    for flag in guardrail_check.flags:
        if not flag.startswith("prohibited_pattern_detected:"):
            continue
        match = re.search(r"\('([^']+)'\)", flag)
        if not match:
            continue
        pattern = re.compile(
            r"[^.!?。\n]*" + re.escape(match.group(1)) + r"[^.!?。\n]*[.!?。]?",
            re.IGNORECASE,
        )
        sanitized = pattern.sub(REDACTION_NOTE, sanitized)
    return sanitized


def sanitize_strings(data: Any, guardrail_check: GuardrailCheck) -> Any:
    """Apply :func:`sanitize_text` to every string inside a JSON-like value."""
    if isinstance(data, str):
        return sanitize_text(data, guardrail_check)
    if isinstance(data, dict):
        return {k: sanitize_strings(v, guardrail_check) for k, v in data.items()}
    if isinstance(data, list):
        return [sanitize_strings(v, guardrail_check) for v in data]
    return data


def collect_strings(data: Any) -> list[str]:
    """Flatten every string value of a JSON-like value."""
    if isinstance(data, str):
        return [data]
    if isinstance(data, dict):
        return [s for v in data.values() for s in collect_strings(v)]
    if isinstance(data, list):
        return [s for v in data for s in collect_strings(v)]
    return []
