"""Free-text advisor answers with a strictly sequential provider fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..config import Settings, get_settings
from ..errors import LLMUnavailableError
from ..schemas.insights import GenerationState
from ..schemas.session import SubjectContext
from . import llm_client, prompts

logger = logging.getLogger(__name__)

APOLOGY = "I am currently recalibrating my logic engine. Please try again later."

DEFAULT_QUESTION = "General clarity"


@dataclass(frozen=True)
class AdvisorOutcome:
    answer: str
    state: GenerationState
    provider: Optional[str] = None


async def _attempt(
    tier: str,
    provider: Optional[llm_client.LLMProvider],
    build_from,
    system_prompt: str,
    user_prompt: str,
) -> Optional[str]:
    try:
        if provider is None:
            provider = llm_client.build_provider(build_from())
        answer = await provider.complete(system_prompt=system_prompt, user_prompt=user_prompt)
    except LLMUnavailableError as exc:
        logger.warning("advisor_provider_failed", extra={"tier": tier, "error": str(exc)})
        return None
    except Exception:
        logger.exception("advisor_provider_unexpected_error", extra={"tier": tier})
        return None
    answer = (answer or "").strip()
    if not answer:
        logger.warning("advisor_provider_empty_answer", extra={"tier": tier})
        return None
    return answer


async def ask_advisor_outcome(
    question: str,
    context: SubjectContext,
    *,
    primary: Optional[llm_client.LLMProvider] = None,
    secondary: Optional[llm_client.LLMProvider] = None,
    settings: Optional[Settings] = None,
) -> AdvisorOutcome:
    """Primary, then secondary only if the primary failed, then the apology."""

    question = (question or "").strip() or DEFAULT_QUESTION
    user_prompt = prompts.render_chat_prompt(question, context)

    def _settings() -> Settings:
        nonlocal settings
        if settings is None:
            settings = get_settings()
        return settings

    answer = await _attempt(
        "primary", primary, lambda: _settings().primary_llm, prompts.CHAT_INSTRUCTION, user_prompt
    )
    if answer is not None:
        return AdvisorOutcome(answer, GenerationState.SUCCEEDED, "primary")

    logger.info("advisor_secondary_attempt", extra={"state": GenerationState.SECONDARY_IN_FLIGHT.value})
    answer = await _attempt(
        "secondary",
        secondary,
        lambda: _settings().secondary_llm,
        prompts.CHAT_INSTRUCTION,
        user_prompt,
    )
    if answer is not None:
        return AdvisorOutcome(answer, GenerationState.SUCCEEDED, "secondary")

    logger.warning("advisor_apology_used")
    return AdvisorOutcome(APOLOGY, GenerationState.SAFE_FALLBACK)


async def ask_advisor(
    question: str,
    context: SubjectContext,
    *,
    primary: Optional[llm_client.LLMProvider] = None,
    secondary: Optional[llm_client.LLMProvider] = None,
    settings: Optional[Settings] = None,
) -> str:
    """Always returns displayable text."""

    outcome = await ask_advisor_outcome(
        question, context, primary=primary, secondary=secondary, settings=settings
    )
    return outcome.answer
