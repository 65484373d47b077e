from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from .insights import GenerationState
from .session import SubjectContext


class AdvisorRequest(BaseModel):
    """A single question, carried explicitly from the entry screen to the advisor."""

    question: str
    context: SubjectContext = SubjectContext()

    @field_validator("question")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "question": "Why does this year feel slower at work?",
                "context": {"birth_precision": "None", "questionnaire_answers": {"pace": "steady"}},
            }
        }
    )


class AdvisorResponse(BaseModel):
    answer: str
    state: GenerationState
    provider: Optional[str] = None
