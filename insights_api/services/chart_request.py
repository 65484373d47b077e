"""Canonical chart request body shared by every chart call of one run."""

from typing import Tuple

from ..config import Settings
from ..schemas.profile import BirthQuery, ChartRequestPayload, ChartSettings, GeoDetails


def clamp_lat_lon(lat: float, lon: float) -> Tuple[float, float]:
    """Clamp latitude/longitude to safe ranges."""

    lat = max(min(lat, 89.9), -89.9)
    lon = ((lon + 180.0) % 360.0) - 180.0  # wrap to [-180, 180)
    return lat, lon


def build_chart_payload(query: BirthQuery, geo: GeoDetails, settings: Settings) -> ChartRequestPayload:
    """Canonical body for every chart call. Pure: same inputs, same payload."""

    birth_date = query.birth_date
    birth_time = query.birth_time
    lat, lon = clamp_lat_lon(geo.latitude, geo.longitude)
    return ChartRequestPayload(
        year=birth_date.year,
        month=birth_date.month,
        date=birth_date.day,
        hours=birth_time.hour,
        minutes=birth_time.minute,
        seconds=birth_time.second,
        latitude=round(lat, 6),
        longitude=round(lon, 6),
        timezone=geo.timezone_offset_hours,
        settings=ChartSettings(
            observation_point=settings.observation_point,
            ayanamsha=settings.ayanamsha,
            language=settings.language,
        ),
    )
