from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .insights import InsightResult
from .profile import AstroProfile

BirthPrecision = Literal["Exact", "Approximate", "DateOnly", "None"]


class LiveLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float


class SubjectContext(BaseModel):
    """Everything the AI steps may know about the subject."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    birth_precision: BirthPrecision = "Exact"
    astro_profile: Optional[AstroProfile] = None
    questionnaire_answers: Dict[str, Any] = Field(default_factory=dict)
    interests: List[str] = Field(default_factory=list)
    current_location: Optional[LiveLocation] = None
    current_timezone: Optional[str] = None

    @property
    def uses_chart(self) -> bool:
        return self.astro_profile is not None and self.birth_precision != "None"

    @property
    def insight_uses_chart(self) -> bool:
        # Noon charts (Approximate/DateOnly) feed chat context only
        return self.astro_profile is not None and self.birth_precision == "Exact"


class SessionProfile(BaseModel):
    """Versioned, immutable session state. ``evolve`` returns the next version."""

    model_config = ConfigDict(frozen=True)

    version: int = 1
    name: Optional[str] = None
    gender: Optional[str] = None
    birth_date: Optional[str] = None
    birth_time: Optional[str] = None
    birth_place: Optional[str] = None
    age: Optional[str] = None
    birth_precision: BirthPrecision = "Exact"
    interests: List[str] = Field(default_factory=list)
    questionnaire_answers: Dict[str, Any] = Field(default_factory=dict)
    astro_profile: Optional[AstroProfile] = None
    insights: Optional[InsightResult] = None
    current_location: Optional[LiveLocation] = None
    current_timezone: Optional[str] = None

    def evolve(self, **changes: Any) -> "SessionProfile":
        changes.pop("version", None)
        data = self.model_dump()
        data.update(changes)
        data["version"] = self.version + 1
        return SessionProfile.model_validate(data)

    def subject(self) -> SubjectContext:
        return SubjectContext(
            name=self.name,
            birth_precision=self.birth_precision,
            astro_profile=self.astro_profile,
            questionnaire_answers=self.questionnaire_answers,
            interests=self.interests,
            current_location=self.current_location,
            current_timezone=self.current_timezone,
        )
