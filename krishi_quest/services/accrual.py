# krishi_quest/services/accrual.py
"""
Quest completion and reward accrual.

Completing a user quest moves it from ``in_progress`` to ``completed`` and
adds the quest's rewards to the owner's Progress:

    total_xp             += xp_reward
    total_coins          += coin_reward
    completed_quests     += 1
    sustainability_score += xp_reward // 2
    badges               += [badge_reward]   (only if not already held)

The read-compute-write cycle runs under the repository's per-user lock so two
completions for the same user can't interleave across awaits and lose an
update. The UserQuest and Progress writes go to the repository as one
``record_completion`` call, which refuses a user quest that is no longer
``in_progress``.
"""

import logging
from typing import Any, Dict, List

from krishi_quest.config.thresholds import COMPLETION_THRESHOLD, SUSTAINABILITY_XP_DIVISOR
from krishi_quest.errors import Conflict, InconsistentState, NotFound
from krishi_quest.repository import Repository
from krishi_quest.schemas import Progress, Quest, QuestStatus, UserQuest
from krishi_quest.utils import utcnow

logger = logging.getLogger(__name__)


def completion_ratio(progress: List[bool]) -> float:
    if not progress:
        return 1.0
    return sum(1 for done in progress if done) / len(progress)


def accrue(progress: Progress, quest: Quest) -> Dict[str, Any]:
    """Return the Progress fields after crediting ``quest``'s rewards."""
    badges = list(progress.badges)
    if quest.badge_reward and quest.badge_reward not in badges:
        badges.append(quest.badge_reward)
    return {
        "total_xp": progress.total_xp + quest.xp_reward,
        "total_coins": progress.total_coins + quest.coin_reward,
        "completed_quests": progress.completed_quests + 1,
        "sustainability_score": progress.sustainability_score
        + quest.xp_reward // SUSTAINABILITY_XP_DIVISOR,
        "badges": badges,
    }


async def complete_quest(repo: Repository, user_quest_id: str) -> UserQuest:
    user_quest = await repo.get_user_quest(user_quest_id)
    if user_quest is None:
        raise NotFound("User quest not found")

    async with repo.user_lock(user_quest.user_id):
        # re-read under the lock; another completion may have won
        user_quest = await repo.get_user_quest(user_quest_id)
        if user_quest is None:
            raise NotFound("User quest not found")

        if user_quest.status != QuestStatus.IN_PROGRESS:
            logger.warning(
                "complete_quest rejected id=%s status=%s", user_quest_id, user_quest.status.value
            )
            raise Conflict(f"Quest cannot be completed from status '{user_quest.status.value}'")

        quest = await repo.get_quest(user_quest.quest_id)
        if quest is None:
            raise NotFound("Quest not found")

        ratio = completion_ratio(user_quest.progress)
        if ratio < COMPLETION_THRESHOLD:
            logger.warning(
                "complete_quest gate not met id=%s done=%s/%s",
                user_quest_id, user_quest.steps_done, len(user_quest.progress),
            )
            raise Conflict(
                f"At least {int(COMPLETION_THRESHOLD * 100)}% of quest steps must be done"
            )

        progress = await repo.get_progress(user_quest.user_id)
        if progress is None:
            logger.error(
                "complete_quest: no progress record for user=%s (user_quest=%s)",
                user_quest.user_id, user_quest_id,
            )
            raise InconsistentState("User progress missing")

        changes = accrue(progress, quest)
        updated = await repo.record_completion(user_quest_id, utcnow(), changes)
        if updated is None:
            logger.error("record_completion wrote nothing for user_quest=%s", user_quest_id)
            raise InconsistentState("User progress missing")

    logger.info(
        "quest completed user=%s quest=%s xp=%s coins=%s",
        updated.user_id, updated.quest_id, changes["total_xp"], changes["total_coins"],
    )
    return updated
