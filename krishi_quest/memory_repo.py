# krishi_quest/memory_repo.py
"""
In-process repository: one insertion-ordered dict per collection.

Records are stored as pydantic models and copied on the way in and out.
Nothing here awaits, so each call runs to completion before another
coroutine can touch the same dicts.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from krishi_quest.config.thresholds import DEFAULT_LEVEL
from krishi_quest.errors import Conflict
from krishi_quest.repository import Repository
from krishi_quest.schemas import (
    Farm,
    FarmCreate,
    MarketPrice,
    MarketPriceCreate,
    Progress,
    Quest,
    QuestCreate,
    QuestStatus,
    Scheme,
    SchemeCreate,
    User,
    UserCreate,
    UserQuest,
    UserScheme,
)
from krishi_quest.utils import new_id, utcnow


def _copy(record):
    return record.model_copy(deep=True) if record is not None else None


class MemoryRepository(Repository):
    def __init__(self) -> None:
        super().__init__()
        self.users: Dict[str, User] = {}
        self.farms: Dict[str, Farm] = {}
        self.quests: Dict[str, Quest] = {}
        self.user_quests: Dict[str, UserQuest] = {}
        # keyed by user id; one record per user
        self.progress: Dict[str, Progress] = {}
        self.schemes: Dict[str, Scheme] = {}
        self.user_schemes: Dict[str, UserScheme] = {}
        self.market_prices: Dict[str, MarketPrice] = {}

    def _patch(self, table: Dict[str, Any], key: str, changes: Dict[str, Any]):
        current = table.get(key)
        if current is None:
            return None
        updated = current.model_copy(update=changes, deep=True)
        table[key] = updated
        return _copy(updated)

    # -----------------------------
    # Users
    # -----------------------------
    async def get_user(self, user_id: str) -> Optional[User]:
        return _copy(self.users.get(user_id))

    async def get_user_by_mobile(self, mobile_number: str) -> Optional[User]:
        for user in self.users.values():
            if user.mobile_number == mobile_number:
                return _copy(user)
        return None

    async def list_users(self) -> List[User]:
        return [_copy(u) for u in self.users.values()]

    async def create_user(self, data: UserCreate) -> User:
        user = User(id=new_id(), created_at=utcnow(), **data.model_dump())
        progress = Progress(id=new_id(), user_id=user.id, level=DEFAULT_LEVEL)
        self.users[user.id] = user
        self.progress[user.id] = progress
        return _copy(user)

    async def update_user(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]:
        return self._patch(self.users, user_id, changes)

    # -----------------------------
    # Farms
    # -----------------------------
    async def get_farm(self, farm_id: str) -> Optional[Farm]:
        return _copy(self.farms.get(farm_id))

    async def get_farm_by_user_id(self, user_id: str) -> Optional[Farm]:
        for farm in self.farms.values():
            if farm.user_id == user_id:
                return _copy(farm)
        return None

    async def create_farm(self, data: FarmCreate) -> Farm:
        farm = Farm(id=new_id(), created_at=utcnow(), **data.model_dump())
        self.farms[farm.id] = farm
        return _copy(farm)

    async def update_farm(self, farm_id: str, changes: Dict[str, Any]) -> Optional[Farm]:
        return self._patch(self.farms, farm_id, changes)

    # -----------------------------
    # Quests
    # -----------------------------
    async def get_quest(self, quest_id: str) -> Optional[Quest]:
        return _copy(self.quests.get(quest_id))

    async def list_quests(
        self, category: Optional[str] = None, active_only: bool = True
    ) -> List[Quest]:
        return [
            _copy(q)
            for q in self.quests.values()
            if (not active_only or q.is_active) and (not category or q.category == category)
        ]

    async def create_quest(self, data: QuestCreate) -> Quest:
        quest = Quest(id=new_id(), created_at=utcnow(), **data.model_dump())
        self.quests[quest.id] = quest
        return _copy(quest)

    async def update_quest(self, quest_id: str, changes: Dict[str, Any]) -> Optional[Quest]:
        return self._patch(self.quests, quest_id, changes)

    # -----------------------------
    # User quests
    # -----------------------------
    async def get_user_quest(self, user_quest_id: str) -> Optional[UserQuest]:
        return _copy(self.user_quests.get(user_quest_id))

    async def find_user_quest(self, user_id: str, quest_id: str) -> Optional[UserQuest]:
        for uq in self.user_quests.values():
            if uq.user_id == user_id and uq.quest_id == quest_id:
                return _copy(uq)
        return None

    async def list_user_quests(self, user_id: str) -> List[UserQuest]:
        return [_copy(uq) for uq in self.user_quests.values() if uq.user_id == user_id]

    async def create_user_quest(
        self, user_id: str, quest_id: str, status: str, progress: List[bool]
    ) -> UserQuest:
        uq = UserQuest(
            id=new_id(),
            user_id=user_id,
            quest_id=quest_id,
            status=status,
            progress=list(progress),
            created_at=utcnow(),
        )
        self.user_quests[uq.id] = uq
        return _copy(uq)

    async def update_user_quest(
        self, user_quest_id: str, changes: Dict[str, Any]
    ) -> Optional[UserQuest]:
        return self._patch(self.user_quests, user_quest_id, changes)

    async def record_completion(
        self,
        user_quest_id: str,
        completed_at: datetime,
        progress_changes: Dict[str, Any],
    ) -> Optional[UserQuest]:
        uq = self.user_quests.get(user_quest_id)
        if uq is None or uq.user_id not in self.progress:
            return None
        if uq.status != QuestStatus.IN_PROGRESS:
            raise Conflict("User quest is no longer in progress")
        self._patch(self.progress, uq.user_id, progress_changes)
        return self._patch(
            self.user_quests,
            user_quest_id,
            {"status": QuestStatus.COMPLETED, "completed_at": completed_at},
        )

    # -----------------------------
    # Progress
    # -----------------------------
    async def get_progress(self, user_id: str) -> Optional[Progress]:
        return _copy(self.progress.get(user_id))

    async def update_progress(
        self, user_id: str, changes: Dict[str, Any]
    ) -> Optional[Progress]:
        return self._patch(self.progress, user_id, changes)

    # -----------------------------
    # Schemes
    # -----------------------------
    async def get_scheme(self, scheme_id: str) -> Optional[Scheme]:
        return _copy(self.schemes.get(scheme_id))

    async def list_schemes(
        self, category: Optional[str] = None, active_only: bool = True
    ) -> List[Scheme]:
        return [
            _copy(s)
            for s in self.schemes.values()
            if (not active_only or s.is_active) and (not category or s.category == category)
        ]

    async def create_scheme(self, data: SchemeCreate) -> Scheme:
        scheme = Scheme(id=new_id(), **data.model_dump())
        self.schemes[scheme.id] = scheme
        return _copy(scheme)

    # -----------------------------
    # User schemes
    # -----------------------------
    async def get_user_scheme(self, user_scheme_id: str) -> Optional[UserScheme]:
        return _copy(self.user_schemes.get(user_scheme_id))

    async def find_user_scheme(self, user_id: str, scheme_id: str) -> Optional[UserScheme]:
        for us in self.user_schemes.values():
            if us.user_id == user_id and us.scheme_id == scheme_id:
                return _copy(us)
        return None

    async def list_user_schemes(self, user_id: str) -> List[UserScheme]:
        return [_copy(us) for us in self.user_schemes.values() if us.user_id == user_id]

    async def create_user_scheme(
        self,
        user_id: str,
        scheme_id: str,
        status: str,
        application_data: Dict[str, Any],
        applied_at: Optional[datetime],
    ) -> UserScheme:
        us = UserScheme(
            id=new_id(),
            user_id=user_id,
            scheme_id=scheme_id,
            status=status,
            application_data=dict(application_data),
            applied_at=applied_at,
        )
        self.user_schemes[us.id] = us
        return _copy(us)

    async def update_user_scheme(
        self, user_scheme_id: str, changes: Dict[str, Any]
    ) -> Optional[UserScheme]:
        return self._patch(self.user_schemes, user_scheme_id, changes)

    # -----------------------------
    # Market prices
    # -----------------------------
    async def list_market_prices(
        self, district: Optional[str] = None, crop: Optional[str] = None
    ) -> List[MarketPrice]:
        return [
            _copy(p)
            for p in self.market_prices.values()
            if (not district or p.district == district) and (not crop or p.crop == crop)
        ]

    async def create_market_price(self, data: MarketPriceCreate) -> MarketPrice:
        price = MarketPrice(id=new_id(), **data.model_dump())
        self.market_prices[price.id] = price
        return _copy(price)
