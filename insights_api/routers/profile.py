from fastapi import APIRouter, Body

from ..schemas import AstroProfile, ProfileResolveRequest
from ..services import pipeline

router = APIRouter(prefix="/v1/profile", tags=["profile"])


@router.post("/resolve", response_model=AstroProfile)
async def resolve_profile_endpoint(
    req: ProfileResolveRequest = Body(
        ...,
        example={"date": "1990-08-18", "time": "14:32", "place": "Hyderabad, India"},
    )
) -> AstroProfile:
    return await pipeline.resolve_astro_profile(req.date, req.time, req.place)
