from __future__ import annotations

from typing import Optional

from krishi_quest.repository import Repository
from krishi_quest.schemas import (
    Farm,
    FarmCreate,
    Quest,
    QuestCreate,
    User,
    UserCreate,
    UserQuest,
    UserQuestCreate,
)
from krishi_quest.services.quests import start_quest, update_steps

_mobile_counter = iter(range(9000000000, 9999999999))


async def make_user(repo: Repository, name: str = "Ramesh Patil") -> User:
    return await repo.create_user(
        UserCreate(name=name, mobile_number=str(next(_mobile_counter)), age_group="31-45")
    )


async def make_farm(
    repo: Repository,
    user_id: str,
    district: str = "Wardha",
    gram_panchayat: str = "Selu",
) -> Farm:
    return await repo.create_farm(
        FarmCreate(
            user_id=user_id,
            state="Maharashtra",
            district=district,
            taluk="Selu",
            gram_panchayat=gram_panchayat,
            village="Keljhar",
            farm_size="2.5 acres",
            soil_type="Black",
            primary_crops=["Cotton", "Soybean"],
            water_source="Borewell",
        )
    )


async def make_quest(
    repo: Repository,
    xp: int = 10,
    coins: int = 150,
    badge: Optional[str] = "Compost Master",
    steps: int = 4,
    category: str = "Soil Health",
    title: str = "Prepare Jeevamrutha",
) -> Quest:
    return await repo.create_quest(
        QuestCreate(
            title=title,
            description=f"{title} on your farm.",
            category=category,
            difficulty="medium",
            coin_reward=coins,
            xp_reward=xp,
            badge_reward=badge,
            steps=[f"Step {i + 1}" for i in range(steps)],
        )
    )


async def start_and_tick(
    repo: Repository, user_id: str, quest: Quest, ticked: Optional[int] = None
) -> UserQuest:
    """Start ``quest`` for the user and tick the first ``ticked`` steps (all by default)."""
    uq = await start_quest(repo, UserQuestCreate(user_id=user_id, quest_id=quest.id))
    n = len(quest.steps) if ticked is None else ticked
    return await update_steps(repo, uq.id, [i < n for i in range(len(quest.steps))])
