# krishi_quest/routes/farms.py
from fastapi import APIRouter, Body, Depends

from krishi_quest.deps import get_repository
from krishi_quest.repository import Repository
from krishi_quest.schemas import Farm, FarmCreate, FarmUpdate
from krishi_quest.services import profiles

router = APIRouter(tags=["farms"])


@router.post("/farms", response_model=Farm)
async def create_farm(payload: FarmCreate = Body(...), repo: Repository = Depends(get_repository)):
    """Create the user's farm (one per user) during onboarding."""
    return await profiles.create_farm(repo, payload)


@router.get("/farms/user/{user_id}", response_model=Farm)
async def get_farm_by_user(user_id: str, repo: Repository = Depends(get_repository)):
    return await profiles.get_farm_for_user(repo, user_id)


@router.patch("/farms/{farm_id}", response_model=Farm)
async def update_farm(
    farm_id: str,
    payload: FarmUpdate = Body(...),
    repo: Repository = Depends(get_repository),
):
    return await profiles.update_farm(repo, farm_id, payload)
