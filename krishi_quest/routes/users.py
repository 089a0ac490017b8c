# krishi_quest/routes/users.py
from fastapi import APIRouter, Body, Depends, Path

from krishi_quest.deps import get_repository
from krishi_quest.repository import Repository
from krishi_quest.schemas import Progress, User, UserCreate, UserUpdate
from krishi_quest.services import profiles

router = APIRouter(tags=["users"])


@router.post("/users", response_model=User)
async def create_user(payload: UserCreate = Body(...), repo: Repository = Depends(get_repository)):
    """
    Register a farmer. The progress record (level 1, no XP/coins/badges) is
    created together with the user.
    """
    return await profiles.create_user(repo, payload)


@router.get("/users/mobile/{mobile}", response_model=User)
async def get_user_by_mobile(mobile: str, repo: Repository = Depends(get_repository)):
    return await profiles.get_user_by_mobile(repo, mobile)


@router.get("/users/{user_id}", response_model=User)
async def get_user(user_id: str = Path(...), repo: Repository = Depends(get_repository)):
    return await profiles.get_user(repo, user_id)


@router.patch("/users/{user_id}", response_model=User)
async def update_user(
    user_id: str,
    payload: UserUpdate = Body(...),
    repo: Repository = Depends(get_repository),
):
    """Edit name, age group or preferred language."""
    return await profiles.update_user(repo, user_id, payload)


@router.get("/user-progress/{user_id}", response_model=Progress)
async def get_user_progress(user_id: str, repo: Repository = Depends(get_repository)):
    return await profiles.get_progress(repo, user_id)
