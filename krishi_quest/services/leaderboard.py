# krishi_quest/services/leaderboard.py
import logging
from typing import List, Optional

from krishi_quest.repository import Repository
from krishi_quest.schemas import LeaderboardEntry

logger = logging.getLogger(__name__)


async def build_leaderboard(
    repo: Repository,
    gram_panchayat: Optional[str] = None,
    district: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[LeaderboardEntry]:
    """
    Rank users by sustainability score, highest first.

    With a ``gram_panchayat`` and/or ``district`` filter only users whose farm
    matches exactly are kept (users without a farm drop out); without filters
    every user is ranked. Equal scores keep user insertion order.
    """
    filtering = bool(gram_panchayat or district)
    entries: List[LeaderboardEntry] = []

    for user in await repo.list_users():
        progress = await repo.get_progress(user.id)
        if progress is None:
            logger.error("leaderboard: user=%s has no progress record, skipped", user.id)
            continue

        if filtering:
            farm = await repo.get_farm_by_user_id(user.id)
            if farm is None:
                continue
            if gram_panchayat and farm.gram_panchayat != gram_panchayat:
                continue
            if district and farm.district != district:
                continue

        entries.append(LeaderboardEntry(user=user, progress=progress))

    # sorted() is stable with reverse=True, so ties stay in insertion order
    ranked = sorted(entries, key=lambda e: e.progress.sustainability_score, reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return ranked
