from fastapi import APIRouter

from ..schemas import AdvisorRequest, AdvisorResponse
from ..services import chat_advisor

router = APIRouter(prefix="/v1/advisor", tags=["advisor"])


@router.post("/ask", response_model=AdvisorResponse)
async def ask_advisor_endpoint(req: AdvisorRequest) -> AdvisorResponse:
    outcome = await chat_advisor.ask_advisor_outcome(req.question, req.context)
    return AdvisorResponse(answer=outcome.answer, state=outcome.state, provider=outcome.provider)
