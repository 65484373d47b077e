"""UTC offset in force for a timezone on a specific local date and time."""

from __future__ import annotations

import logging
from datetime import date, time
from typing import Any, Optional

from ..config import Settings
from .astro_client import AstrologyApiClient
from .endpoints import TIMEZONE_WITH_DST

logger = logging.getLogger(__name__)

MAX_OFFSET_HOURS = 14.0


def _extract_offset(data: Any) -> Optional[float]:
    value = data
    if isinstance(value, dict):
        for key in ("output", "timezone_offset", "offset", "offsetHours"):
            if key in value:
                return _extract_offset(value[key])
        return None
    if isinstance(value, bool) or value is None:
        return None
    try:
        offset = float(value)
    except (TypeError, ValueError):
        return None
    if abs(offset) > MAX_OFFSET_HOURS:
        return None
    return offset


class TimezoneOffsetResolver:
    def __init__(self, client: AstrologyApiClient, settings: Settings) -> None:
        self.client = client
        self.settings = settings

    def lookup(self, timezone_id: str, local_date: date, local_time: time) -> Optional[float]:
        """Offset in hours, or None when the service fails or replies badly."""

        body = {
            "timezone": timezone_id,
            "year": local_date.year,
            "month": local_date.month,
            "date": local_date.day,
            "hours": local_time.hour,
            "minutes": local_time.minute,
        }
        try:
            data = self.client.post(TIMEZONE_WITH_DST, body)
        except Exception as exc:
            logger.warning(
                "timezone_offset_failed",
                extra={"timezone_id": timezone_id, "reason": str(exc)},
            )
            return None

        offset = _extract_offset(data)
        if offset is None:
            logger.warning("timezone_offset_malformed", extra={"timezone_id": timezone_id})
        return offset

    def resolve(self, timezone_id: str, local_date: date, local_time: time) -> float:
        """Offset in hours. Falls back to the default place's offset on any failure."""

        offset = self.lookup(timezone_id, local_date, local_time)
        if offset is None:
            return self.settings.default_offset
        return offset
