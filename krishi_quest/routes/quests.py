# krishi_quest/routes/quests.py
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from krishi_quest.deps import get_repository
from krishi_quest.repository import Repository
from krishi_quest.schemas import Quest, QuestUpdate, UserQuest, UserQuestCreate, UserQuestStepsUpdate
from krishi_quest.services import accrual, catalog, quests

router = APIRouter()


# =========================
# Quest catalog
# =========================
@router.get("/quests", response_model=List[Quest], tags=["quests"])
async def list_quests(
    category: Optional[str] = Query(None),
    repo: Repository = Depends(get_repository),
):
    """Active quests, optionally only one category."""
    return await catalog.list_quests(repo, category)


@router.get("/quests/{quest_id}", response_model=Quest, tags=["quests"])
async def get_quest(quest_id: str, repo: Repository = Depends(get_repository)):
    return await catalog.get_quest(repo, quest_id)


@router.patch("/quests/{quest_id}", response_model=Quest, tags=["quests"])
async def set_quest_active(
    quest_id: str,
    payload: QuestUpdate = Body(...),
    repo: Repository = Depends(get_repository),
):
    return await catalog.set_quest_active(repo, quest_id, payload.is_active)


# =========================
# User quests
# =========================
@router.get("/user-quests/{user_id}", response_model=List[UserQuest], tags=["user-quests"])
async def list_user_quests(user_id: str, repo: Repository = Depends(get_repository)):
    return await quests.list_user_quests(repo, user_id)


@router.post("/user-quests", response_model=UserQuest, tags=["user-quests"])
async def start_quest(
    payload: UserQuestCreate = Body(...),
    repo: Repository = Depends(get_repository),
):
    """
    Start a quest. The attempt begins ``in_progress`` with every step
    unticked; starting the same quest twice is rejected with 409.
    """
    return await quests.start_quest(repo, payload)


@router.patch("/user-quests/{user_quest_id}", response_model=UserQuest, tags=["user-quests"])
async def update_quest_steps(
    user_quest_id: str,
    payload: UserQuestStepsUpdate = Body(...),
    repo: Repository = Depends(get_repository),
):
    """Replace the per-step checklist of an in-progress quest."""
    return await quests.update_steps(repo, user_quest_id, payload.progress)


@router.post(
    "/user-quests/{user_quest_id}/complete", response_model=UserQuest, tags=["user-quests"]
)
async def complete_quest(user_quest_id: str, repo: Repository = Depends(get_repository)):
    """
    Complete an in-progress quest and credit its rewards to the user's
    progress. Needs at least 75% of the steps ticked; a quest that isn't in
    progress (including one already completed) is rejected with 409.
    """
    return await accrual.complete_quest(repo, user_quest_id)
