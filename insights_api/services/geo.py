"""Place name -> coordinates and timezone, degrading to a fixed default place."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from timezonefinder import TimezoneFinder

from ..config import Settings
from ..schemas.profile import GeoDetails
from .astro_client import AstrologyApiClient
from .endpoints import GEO_DETAILS

logger = logging.getLogger(__name__)

_tz_finder: Optional[TimezoneFinder] = None


def infer_tz(lat: float, lon: float) -> Optional[str]:
    """Infer timezone name for a coordinate pair."""

    global _tz_finder
    if _tz_finder is None:
        _tz_finder = TimezoneFinder()
    try:
        return _tz_finder.timezone_at(lng=lon, lat=lat)
    except ValueError:
        return None


def _first_candidate(data: Any) -> Optional[Dict[str, Any]]:
    output = data.get("output", data) if isinstance(data, dict) else data
    if isinstance(output, dict):
        output = [output]
    if not isinstance(output, list):
        return None
    for item in output:
        if isinstance(item, dict):
            return item
    return None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class GeoResolver:
    def __init__(self, client: AstrologyApiClient, settings: Settings) -> None:
        self.client = client
        self.settings = settings

    def default(self) -> GeoDetails:
        s = self.settings
        return GeoDetails(
            latitude=s.default_lat,
            longitude=s.default_lon,
            timezone_id=s.default_tz,
            timezone_offset_hours=s.default_offset,
            label=s.default_label,
            defaults_used=True,
        )

    def resolve(self, place: str) -> GeoDetails:
        """First geocoding match wins. Never raises."""

        try:
            data = self.client.post(GEO_DETAILS, {"location": place})
        except Exception as exc:
            logger.warning("geo_resolve_failed", extra={"place": place, "reason": str(exc)})
            return self.default()

        candidate = _first_candidate(data)
        if candidate is None:
            logger.warning("geo_resolve_no_match", extra={"place": place})
            return self.default()

        lat = _as_float(candidate.get("latitude"))
        lon = _as_float(candidate.get("longitude"))
        if lat is None or lon is None or not -90 <= lat <= 90 or not -180 <= lon <= 180:
            logger.warning("geo_resolve_bad_coordinates", extra={"place": place})
            return self.default()

        tz = candidate.get("timezone") or candidate.get("timezone_id")
        if not isinstance(tz, str) or not tz.strip():
            tz = infer_tz(lat, lon)
        offset = _as_float(candidate.get("timezone_offset"))
        if not tz:
            # an unresolved identifier must not travel with an unrelated offset
            tz, offset = self.settings.default_tz, self.settings.default_offset
        if offset is None:
            offset = self.settings.default_offset

        label = candidate.get("complete_name") or candidate.get("location_name") or place
        logger.info("geo_resolved", extra={"place": place, "tz": tz})
        return GeoDetails(
            latitude=lat,
            longitude=lon,
            timezone_id=tz.strip(),
            timezone_offset_hours=offset,
            label=str(label),
        )
