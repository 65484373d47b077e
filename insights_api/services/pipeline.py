"""resolve_astro_profile: geo -> timezone offset -> payload -> fan-out -> normalize."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from ..config import Settings, get_settings
from ..errors import InputValidationError
from ..schemas.profile import AstroProfile, BirthQuery
from .astro_client import AstrologyApiClient
from .chart_fetch import fetch_chart_bundle
from .chart_normalizer import build_astro_profile
from .chart_request import build_chart_payload
from .geo import GeoResolver
from .timezone_offset import TimezoneOffsetResolver

logger = logging.getLogger(__name__)


def parse_birth_query(date: str, time: str, place: str) -> BirthQuery:
    try:
        return BirthQuery(date=date, time=time, place=place)
    except ValidationError as exc:
        messages = "; ".join(err["msg"] for err in exc.errors())
        raise InputValidationError(messages) from exc


async def resolve_astro_profile(
    date: str,
    time: str,
    place: str,
    *,
    settings: Optional[Settings] = None,
    client: Optional[AstrologyApiClient] = None,
    now: Optional[datetime] = None,
) -> AstroProfile:
    """Full chart for one birth query, or a single fatal error.

    Raises ``InputValidationError`` or ``MissingCredentialError`` before any
    network traffic, and ``CriticalDependencyError`` when the core planets
    or almanac call fails. Everything else degrades inside the profile.
    """

    query = parse_birth_query(date, time, place)
    settings = settings or get_settings()
    client = client or AstrologyApiClient(settings)
    client.require_key()

    geo = await asyncio.to_thread(GeoResolver(client, settings).resolve, query.place)
    offset = await asyncio.to_thread(
        TimezoneOffsetResolver(client, settings).lookup,
        geo.timezone_id,
        query.birth_date,
        query.birth_time,
    )
    if offset is None:
        # the default offset only ever travels with the default zone
        logger.warning(
            "timezone_defaults_used",
            extra={"timezone_id": geo.timezone_id, "default_tz": settings.default_tz},
        )
        geo = geo.model_copy(
            update={"timezone_id": settings.default_tz, "timezone_offset_hours": settings.default_offset}
        )
    else:
        geo = geo.model_copy(update={"timezone_offset_hours": offset})

    payload = build_chart_payload(query, geo, settings)
    bundle = await fetch_chart_bundle(client, payload, timeout=settings.astrology_api_timeout)
    profile = build_astro_profile(bundle, geo, now=now)

    logger.info(
        "astro_profile_resolved",
        extra={
            "timezone_id": profile.timezone_id,
            "divisional_charts": len(profile.divisional_charts),
            "degraded_endpoints": sorted(bundle.failures),
        },
    )
    return profile
