from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

AreaStatus = Literal["Active", "Stable", "Sensitive"]
EnergyStatus = Literal["High", "Moderate", "Low"]


class GenerationState(str, Enum):
    NOT_STARTED = "NotStarted"
    PRIMARY_IN_FLIGHT = "PrimaryInFlight"
    SECONDARY_IN_FLIGHT = "SecondaryInFlight"
    SUCCEEDED = "Succeeded"
    SAFE_FALLBACK = "SafeFallback"


class AscendantAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    headline: str
    content: str


class MoonAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    headline: str
    tone: str
    content: str
    nakshatra_content: str


class LifePhaseAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    headline: str
    theme: str
    description: str


class LifeArea(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: AreaStatus
    insight: str


class EnergyArea(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: EnergyStatus
    insight: str


class LifeAreas(BaseModel):
    model_config = ConfigDict(frozen=True)

    career: LifeArea
    wealth: LifeArea
    relationships: LifeArea
    energy: EnergyArea


class InsightResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    ascendant_analysis: AscendantAnalysis
    moon_analysis: MoonAnalysis
    life_phase_analysis: LifePhaseAnalysis
    life_areas: LifeAreas


class InsightResponse(BaseModel):
    insights: InsightResult
    state: GenerationState
    fallback_reason: Optional[str] = None
