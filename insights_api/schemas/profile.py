from __future__ import annotations

import json
from datetime import date as _date, time as _time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BirthQuery(BaseModel):
    """Birth coordinates as entered during onboarding."""

    model_config = ConfigDict(frozen=True)

    date: str = Field(..., description="YYYY-MM-DD")
    time: str = Field(..., description="HH:MM (24h), seconds optional")
    place: str = Field(..., description='Free text, e.g. "Hyderabad, India"')

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str) -> str:
        value = value.strip()
        try:
            _date.fromisoformat(value)
        except ValueError as exc:
            raise ValueError(f"malformed date {value!r}, expected YYYY-MM-DD") from exc
        return value

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        value = value.strip()
        parts = value.split(":")
        if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
            raise ValueError(f"malformed time {value!r}, expected HH:MM")
        try:
            _time(*(int(p) for p in parts))
        except ValueError as exc:
            raise ValueError(f"malformed time {value!r}, expected HH:MM") from exc
        return value

    @field_validator("place")
    @classmethod
    def _check_place(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("place must not be empty")
        return value

    @property
    def birth_date(self) -> _date:
        return _date.fromisoformat(self.date)

    @property
    def birth_time(self) -> _time:
        return _time(*(int(p) for p in self.time.split(":")))


class GeoDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    timezone_id: str
    timezone_offset_hours: float
    label: Optional[str] = None
    defaults_used: bool = False


class ChartSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    observation_point: str = "topocentric"
    ayanamsha: str = "lahiri"
    language: str = "en"


class ChartRequestPayload(BaseModel):
    """Body shared by every chart-computation call of one pipeline run."""

    model_config = ConfigDict(frozen=True)

    year: int
    month: int
    date: int
    hours: int
    minutes: int
    seconds: int = 0
    latitude: float
    longitude: float
    timezone: float
    settings: ChartSettings = ChartSettings()

    def to_body(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    def to_json(self) -> str:
        return json.dumps(self.to_body(), sort_keys=True, separators=(",", ":"))


class PlanetRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    sign_name: str = "Unknown"
    sign_lord: Optional[str] = None
    nakshatra: Optional[str] = None
    nakshatra_lord: Optional[str] = None
    nakshatra_pada: Optional[int] = None
    house_number: Optional[int] = None
    is_retrograde: Optional[bool] = None
    full_degree: Optional[float] = None
    normalized_degree: Optional[float] = None

    @property
    def key(self) -> str:
        return self.name.strip().lower()


class AstroProfile(BaseModel):
    """Aggregated chart for one onboarding pass. Replaced wholesale, never patched."""

    model_config = ConfigDict(frozen=True)

    ascendant_sign: str
    moon_sign: str
    moon_nakshatra: str = "Unknown"
    current_major_period: str = "Unknown"
    current_sub_period: str = "Unknown"
    planetary_positions: Dict[str, str] = Field(default_factory=dict)
    planets: List[PlanetRecord] = Field(default_factory=list)
    extended_available: bool = False
    strength: Optional[Any] = None
    yogas: List[str] = Field(default_factory=list)
    almanac: Optional[Dict[str, Any]] = None
    divisional_charts: Dict[str, List[PlanetRecord]] = Field(default_factory=dict)
    timezone_id: str
    timezone_offset_hours: float
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    place_label: Optional[str] = None


class ProfileResolveRequest(BaseModel):
    date: str
    time: str
    place: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"date": "1990-08-18", "time": "14:32", "place": "Hyderabad, India"}
        }
    )
