from fastapi import APIRouter, Body

from ..schemas import InsightResponse, SubjectContext
from ..services import insight_generator

router = APIRouter(prefix="/v1/insights", tags=["insights"])


@router.post("/generate", response_model=InsightResponse)
async def generate_insights_endpoint(
    context: SubjectContext = Body(
        ...,
        example={
            "name": "Asha",
            "birth_precision": "None",
            "questionnaire_answers": {"type": "Patterns", "data": {"energy": "bursts"}},
            "interests": ["Job", "Health"],
        },
    )
) -> InsightResponse:
    outcome = await insight_generator.generate_insights_outcome(context)
    return InsightResponse(
        insights=outcome.insights, state=outcome.state, fallback_reason=outcome.reason
    )
