from fastapi import APIRouter, Body

from ..schemas import SessionProfile
from ..services import onboarding

router = APIRouter(prefix="/v1/onboarding", tags=["onboarding"])


@router.post("/run", response_model=SessionProfile)
async def run_onboarding_endpoint(
    session: SessionProfile = Body(
        ...,
        example={
            "name": "Asha",
            "birth_date": "1990-08-18",
            "birth_time": "14:32",
            "birth_place": "Hyderabad, India",
            "birth_precision": "Exact",
            "interests": ["Self", "Job"],
        },
    )
) -> SessionProfile:
    return await onboarding.run_onboarding(session)
