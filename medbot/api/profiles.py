# medbot/api/profiles.py
from fastapi import APIRouter, Depends, HTTPException

from medbot.api.deps import get_repo
from medbot.schemas.chat import ConditionsUpdate
from medbot.schemas.medical import UserMedicalProfile
from medbot.services.repo import Repo

router = APIRouter(prefix="/api/medical", tags=["profiles"])


@router.get("/profile/{user_id}", response_model=UserMedicalProfile)
async def get_profile(user_id: str, repo: Repo = Depends(get_repo)):
    profile = await repo.get_medical_profile(user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Medical profile not found")
    return profile


@router.post("/conditions/{user_id}")
async def update_conditions(
    user_id: str,
    payload: ConditionsUpdate,
    repo: Repo = Depends(get_repo),
):
    conditions = [c.strip() for c in payload.conditions if c.strip()]
    updated = await repo.update_medical_conditions(user_id, conditions)
    return {"success": updated, "conditions": conditions}
