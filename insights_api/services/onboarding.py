"""Completes onboarding: chart (when precision allows) plus insights."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..config import Settings, get_settings
from ..errors import InputValidationError
from ..schemas.session import SessionProfile
from . import llm_client
from .astro_client import AstrologyApiClient
from .insight_generator import generate_insights
from .pipeline import resolve_astro_profile

logger = logging.getLogger(__name__)

INTEREST_AREAS = ("Self", "Wealth", "Health", "Love", "Family", "Job", "Business", "Spirituality")

NOON = "12:00"


def _chart_time(session: SessionProfile) -> str:
    if session.birth_precision == "Exact":
        if not session.birth_time:
            raise InputValidationError("birth_time is required for Exact precision")
        return session.birth_time
    return NOON


async def run_onboarding(
    session: SessionProfile,
    *,
    settings: Optional[Settings] = None,
    client: Optional[AstrologyApiClient] = None,
    provider: Optional[llm_client.LLMProvider] = None,
    now: Optional[datetime] = None,
) -> SessionProfile:
    """Return the next session version carrying the chart and insights.

    Fatal chart errors propagate unchanged; insight degradation does not.
    """

    settings = settings or get_settings()
    interests = [item for item in session.interests if item in INTEREST_AREAS]

    astro_profile = None
    if session.birth_precision != "None":
        if not session.birth_date:
            raise InputValidationError("birth_date is required unless precision is None")
        if not session.birth_place:
            raise InputValidationError("birth_place is required unless precision is None")
        astro_profile = await resolve_astro_profile(
            session.birth_date,
            _chart_time(session),
            session.birth_place,
            settings=settings,
            client=client,
            now=now,
        )

    staged = session.evolve(astro_profile=astro_profile, interests=interests)
    insights = await generate_insights(staged.subject(), provider=provider, settings=settings)

    logger.info(
        "onboarding_completed",
        extra={"precision": session.birth_precision, "chart": astro_profile is not None},
    )
    return session.evolve(astro_profile=astro_profile, interests=interests, insights=insights)
