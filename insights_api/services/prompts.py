"""Prompt templates for insight generation and the chat advisor."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional

from jinja2 import Environment, Template

from ..schemas.session import SubjectContext

SYSTEM_INSTRUCTION = """\
You are a Vedic astrology guide focused on explaining life patterns, emotional phases and timing logic.
You are NOT a fortune teller.
Tone: calm, intelligent, emotionally safe, modern, minimal.
Rules:
1. Avoid drama, fear-mongering or definitive predictions (e.g. "You will get married").
2. Use phrasing like "Energy is focused on...", "You may feel...", "This phase reflects...".
3. Focus on psychological and developmental archetypes (Saturn is discipline and structure, not bad luck).
"""

CHAT_INSTRUCTION = (
    SYSTEM_INSTRUCTION
    + "Provide a concise, 2-paragraph reflective answer. Do not give a direct Yes/No.\n"
)

INSIGHT_JSON_INSTRUCTION = (
    SYSTEM_INSTRUCTION
    + "Respond with a single JSON object that conforms exactly to the provided JSON schema. "
    "Do not wrap it in markdown.\n"
)

CHART_INSIGHT_TEMPLATE = """\
Generate a profile insight based on this data.

User Data:
Name: {{ name or "Seeker" }}
Ascendant: {{ profile.ascendant_sign }}
Moon Sign: {{ profile.moon_sign }}
Moon Nakshatra: {{ profile.moon_nakshatra }}
Current Dasha: {{ profile.current_major_period }} / {{ profile.current_sub_period }}
{% if profile.planetary_positions %}
Planetary Positions:
{% for body, sign in profile.planetary_positions.items() %}
- {{ body }}: {{ sign }}
{% endfor %}
{% endif %}
{% if profile.yogas %}
Yogas: {{ profile.yogas | join(", ") }}
{% endif %}
{% if interests %}
Focus Areas: {{ interests | join(", ") }}
{% endif %}

JSON schema:
{{ schema_json }}
"""

QUESTIONNAIRE_INSIGHT_TEMPLATE = """\
Generate a profile insight based on this data.

User Data (No Birth Time):
Name: {{ name or "Seeker" }}
Questionnaire Answers: {{ answers_json }}
{% if interests %}
Focus Areas: {{ interests | join(", ") }}
{% endif %}
Derive archetypes based on their self-reported patterns.

JSON schema:
{{ schema_json }}
"""

CHAT_TEMPLATE = """\
User Question: "{{ question }}"

{% if profile %}
Chart Context: Ascendant {{ profile.ascendant_sign }}, Moon {{ profile.moon_sign }}, Dasha {{ profile.current_major_period }} / {{ profile.current_sub_period }}.
{% else %}
Chart Context: Unknown time. Basing on user reported patterns: {{ answers_json }}
{% endif %}
{% if location %}
Live Context: User is currently at Lat/Lng ({{ location.lat }}, {{ location.lng }}) in Timezone {{ timezone or "Unknown" }}.
{% else %}
Live Context: Timezone {{ timezone or "Unknown" }}.
{% endif %}
"""

_jinja_env: Optional[Environment] = None


def _get_jinja_env() -> Environment:
    global _jinja_env
    if _jinja_env is None:
        _jinja_env = Environment(autoescape=False, trim_blocks=True, lstrip_blocks=True)
    return _jinja_env


@lru_cache(maxsize=16)
def _compile_template(source: str) -> Template:
    return _get_jinja_env().from_string(source)


def _answers_json(answers: Mapping[str, Any]) -> str:
    return json.dumps(dict(answers), sort_keys=True, ensure_ascii=False, default=str)


def render_insight_prompt(subject: SubjectContext, schema: Dict[str, Any]) -> str:
    context = {
        "name": subject.name,
        "interests": subject.interests,
        "schema_json": json.dumps(schema, indent=2),
    }
    if subject.insight_uses_chart:
        return _compile_template(CHART_INSIGHT_TEMPLATE).render(
            profile=subject.astro_profile, **context
        )
    return _compile_template(QUESTIONNAIRE_INSIGHT_TEMPLATE).render(
        answers_json=_answers_json(subject.questionnaire_answers), **context
    )


def render_chat_prompt(question: str, subject: SubjectContext) -> str:
    return _compile_template(CHAT_TEMPLATE).render(
        question=question,
        profile=subject.astro_profile if subject.uses_chart else None,
        answers_json=_answers_json(subject.questionnaire_answers),
        location=subject.current_location,
        timezone=subject.current_timezone,
    )
