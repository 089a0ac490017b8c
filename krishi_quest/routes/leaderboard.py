# krishi_quest/routes/leaderboard.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from krishi_quest.deps import get_repository
from krishi_quest.repository import Repository
from krishi_quest.schemas import LeaderboardEntry
from krishi_quest.services.leaderboard import build_leaderboard

router = APIRouter(tags=["leaderboard"])


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
async def leaderboard(
    gram_panchayat: Optional[str] = Query(None, alias="gramPanchayat"),
    district: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
    repo: Repository = Depends(get_repository),
):
    """
    Users ranked by sustainability score. Filter by gramPanchayat and/or
    district to compare within a locality.
    """
    return await build_leaderboard(
        repo, gram_panchayat=gram_panchayat, district=district, limit=limit
    )
