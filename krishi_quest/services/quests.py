# krishi_quest/services/quests.py
import logging
from typing import List

from krishi_quest.errors import Conflict, NotFound, ValidationError
from krishi_quest.repository import Repository
from krishi_quest.schemas import QuestStatus, UserQuest, UserQuestCreate

logger = logging.getLogger(__name__)


async def start_quest(repo: Repository, payload: UserQuestCreate) -> UserQuest:
    """
    Start a quest for a user: status ``in_progress`` with one unticked entry
    per quest step. A (user, quest) pair can only be started once.
    """
    if await repo.get_user(payload.user_id) is None:
        raise NotFound("User not found")

    quest = await repo.get_quest(payload.quest_id)
    if quest is None:
        raise NotFound("Quest not found")
    if not quest.is_active:
        raise ValidationError("Quest is not active")

    existing = await repo.find_user_quest(payload.user_id, payload.quest_id)
    if existing is not None:
        logger.warning(
            "start_quest duplicate user=%s quest=%s existing=%s",
            payload.user_id, payload.quest_id, existing.id,
        )
        raise Conflict("Quest already started for this user")

    user_quest = await repo.create_user_quest(
        payload.user_id,
        payload.quest_id,
        QuestStatus.IN_PROGRESS,
        [False] * len(quest.steps),
    )
    logger.info("quest started user=%s quest=%s id=%s", payload.user_id, quest.id, user_quest.id)
    return user_quest


async def update_steps(repo: Repository, user_quest_id: str, progress: List[bool]) -> UserQuest:
    user_quest = await repo.get_user_quest(user_quest_id)
    if user_quest is None:
        raise NotFound("User quest not found")
    if user_quest.status != QuestStatus.IN_PROGRESS:
        raise Conflict("Steps can only be updated while the quest is in progress")

    quest = await repo.get_quest(user_quest.quest_id)
    if quest is None:
        raise NotFound("Quest not found")
    if len(progress) != len(quest.steps):
        raise ValidationError(
            f"Progress must have {len(quest.steps)} entries, got {len(progress)}"
        )

    updated = await repo.update_user_quest(user_quest_id, {"progress": list(progress)})
    if updated is None:
        raise NotFound("User quest not found")
    return updated


async def list_user_quests(repo: Repository, user_id: str) -> List[UserQuest]:
    return await repo.list_user_quests(user_id)
