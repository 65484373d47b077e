"""Structured profile insights from the primary AI provider.

One attempt, no secondary provider. Anything short of a complete, valid
payload resolves to ``SAFE_INSIGHTS``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft7Validator
from pydantic import ValidationError

from ..config import Settings, get_settings
from ..errors import LLMUnavailableError
from ..schemas.insights import GenerationState, InsightResult
from ..schemas.session import SubjectContext
from . import llm_client, prompts

logger = logging.getLogger(__name__)

_AREA = {
    "type": "object",
    "required": ["status", "insight"],
    "properties": {
        "status": {"type": "string", "enum": ["Active", "Stable", "Sensitive"]},
        "insight": {"type": "string"},
    },
}

INSIGHT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["ascendant_analysis", "moon_analysis", "life_phase_analysis", "life_areas"],
    "properties": {
        "ascendant_analysis": {
            "type": "object",
            "required": ["headline", "content"],
            "properties": {
                "headline": {"type": "string"},
                "content": {
                    "type": "string",
                    "description": "2-3 sentences on how they approach life based on the Ascendant.",
                },
            },
        },
        "moon_analysis": {
            "type": "object",
            "required": ["headline", "tone", "content", "nakshatra_content"],
            "properties": {
                "headline": {"type": "string"},
                "tone": {"type": "string"},
                "content": {"type": "string", "description": "Emotional baseline description."},
                "nakshatra_content": {
                    "type": "string",
                    "description": "Inner behavioral pattern when balanced vs disturbed.",
                },
            },
        },
        "life_phase_analysis": {
            "type": "object",
            "required": ["headline", "theme", "description"],
            "properties": {
                "headline": {"type": "string", "description": "Name of the phase, e.g. Jupiter Phase"},
                "theme": {"type": "string"},
                "description": {
                    "type": "string",
                    "description": "What this time period is about developmentally.",
                },
            },
        },
        "life_areas": {
            "type": "object",
            "required": ["career", "wealth", "relationships", "energy"],
            "properties": {
                "career": _AREA,
                "wealth": _AREA,
                "relationships": _AREA,
                "energy": {
                    "type": "object",
                    "required": ["status", "insight"],
                    "properties": {
                        "status": {"type": "string", "enum": ["High", "Moderate", "Low"]},
                        "insight": {"type": "string"},
                    },
                },
            },
        },
    },
}

INSIGHT_VALIDATOR = Draft7Validator(INSIGHT_SCHEMA)

MANDATORY_SECTIONS: Tuple[str, ...] = ("ascendant_analysis", "moon_analysis", "life_phase_analysis")

SAFE_INSIGHTS = InsightResult.model_validate(
    {
        "ascendant_analysis": {
            "headline": "A Steady Way Forward",
            "content": (
                "You tend to meet life with a blend of care and curiosity. "
                "Taking things one step at a time serves you well."
            ),
        },
        "moon_analysis": {
            "headline": "A Reflective Inner World",
            "tone": "Calm",
            "content": "Your emotional baseline is steadier when you give yourself room to pause.",
            "nakshatra_content": (
                "When balanced you feel grounded and open; when stretched thin, "
                "quiet routines help you return to centre."
            ),
        },
        "life_phase_analysis": {
            "headline": "A Phase of Integration",
            "theme": "Consolidation",
            "description": (
                "This period reflects gathering what you have learned and "
                "building on foundations already in place."
            ),
        },
        "life_areas": {
            "career": {"status": "Stable", "insight": "Consistent effort is the theme here."},
            "wealth": {"status": "Stable", "insight": "Measured choices support a sense of security."},
            "relationships": {
                "status": "Stable",
                "insight": "Honest, gentle communication keeps connections warm.",
            },
            "energy": {"status": "Moderate", "insight": "Balance activity with genuine rest."},
        },
    }
)


@dataclass(frozen=True)
class InsightOutcome:
    insights: InsightResult
    state: GenerationState
    reason: Optional[str] = None

    @property
    def used_fallback(self) -> bool:
        return self.state is GenerationState.SAFE_FALLBACK


def _parse_response(raw: str) -> Optional[Dict[str, Any]]:
    raw = raw.strip()
    if raw.startswith("```"):
        raw = raw.strip("`")
        if raw.lower().startswith("json"):
            raw = raw[4:]
        raw = raw.strip()
    if not raw:
        return None
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return payload if isinstance(payload, dict) else None


def _missing_sections(payload: Dict[str, Any]) -> List[str]:
    return [
        section
        for section in MANDATORY_SECTIONS
        if not isinstance(payload.get(section), dict) or not payload.get(section)
    ]


def _validate_payload(payload: Dict[str, Any]) -> Tuple[bool, List[str]]:
    errors = [
        f"{'/'.join(str(p) for p in err.path) or '<root>'}: {err.message}"
        for err in INSIGHT_VALIDATOR.iter_errors(payload)
    ]
    return not errors, errors


def _fallback(reason: str, **context: Any) -> InsightOutcome:
    logger.warning("insight_fallback_used", extra={"reason": reason, **context})
    return InsightOutcome(SAFE_INSIGHTS, GenerationState.SAFE_FALLBACK, reason)


async def generate_insights_outcome(
    subject: SubjectContext,
    *,
    provider: Optional[llm_client.LLMProvider] = None,
    settings: Optional[Settings] = None,
) -> InsightOutcome:
    """Run NotStarted -> PrimaryInFlight -> Succeeded | SafeFallback."""

    branch = "chart" if subject.insight_uses_chart else "questionnaire"
    try:
        if provider is None:
            settings = settings or get_settings()
            provider = llm_client.build_provider(settings.primary_llm)
        user_prompt = prompts.render_insight_prompt(subject, INSIGHT_SCHEMA)
        logger.info(
            "insight_generation_started",
            extra={"branch": branch, "state": GenerationState.PRIMARY_IN_FLIGHT.value},
        )
        raw = await provider.complete(
            system_prompt=prompts.INSIGHT_JSON_INSTRUCTION,
            user_prompt=user_prompt,
            json_mode=True,
            temperature=0.6,
            max_tokens=1500,
        )
    except LLMUnavailableError as exc:
        return _fallback("provider_error", branch=branch, error=str(exc))
    except Exception as exc:
        logger.exception("insight_provider_unexpected_error", extra={"branch": branch})
        return _fallback("provider_error", branch=branch, error=type(exc).__name__)

    payload = _parse_response(raw)
    if payload is None:
        return _fallback("unparseable_response", branch=branch)

    missing = _missing_sections(payload)
    if missing:
        # Hallucination signal: the model skipped a whole section
        return _fallback("missing_sections", branch=branch, missing=missing)

    ok, errors = _validate_payload(payload)
    if not ok:
        return _fallback("schema_mismatch", branch=branch, errors=errors[:5])

    try:
        insights = InsightResult.model_validate(payload)
    except ValidationError as exc:
        return _fallback("model_mismatch", branch=branch, errors=exc.error_count())

    logger.info("insight_generation_succeeded", extra={"branch": branch})
    return InsightOutcome(insights, GenerationState.SUCCEEDED)


async def generate_insights(
    subject: SubjectContext,
    *,
    provider: Optional[llm_client.LLMProvider] = None,
    settings: Optional[Settings] = None,
) -> InsightResult:
    """Never raises on provider degradation; returns the safe template instead."""

    outcome = await generate_insights_outcome(subject, provider=provider, settings=settings)
    return outcome.insights
