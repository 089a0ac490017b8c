# krishi_quest/repository.py
"""
Storage interface shared by the in-memory and SQL back-ends.

Every method returns pydantic records from ``krishi_quest.schemas`` (never
live ORM objects or shared dict entries), so callers can't mutate stored
state by accident. ``update_*`` methods return ``None`` for an unknown id;
the services turn that into ``NotFound``.
"""

import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional

from krishi_quest.schemas import (
    Farm,
    FarmCreate,
    MarketPrice,
    MarketPriceCreate,
    Progress,
    Quest,
    QuestCreate,
    Scheme,
    SchemeCreate,
    User,
    UserCreate,
    UserQuest,
    UserScheme,
)


class Repository(ABC):
    def __init__(self) -> None:
        # user id -> [lock, holders + waiters]
        self._user_locks: Dict[str, list] = {}

    @asynccontextmanager
    async def user_lock(self, user_id: str) -> AsyncIterator[None]:
        """
        Serialise read-compute-write cycles on one user's records within this
        process. The entry is dropped once nobody holds or waits on it.
        """
        entry = self._user_locks.get(user_id)
        if entry is None:
            entry = self._user_locks[user_id] = [asyncio.Lock(), 0]
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._user_locks[user_id]

    async def init(self) -> None:
        """Prepare storage (create tables, open pools). No-op by default."""

    async def close(self) -> None:
        """Release storage resources. No-op by default."""

    # Users
    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    async def get_user_by_mobile(self, mobile_number: str) -> Optional[User]: ...

    @abstractmethod
    async def list_users(self) -> List[User]:
        """All users in insertion order."""

    @abstractmethod
    async def create_user(self, data: UserCreate) -> User:
        """Create the user and its zeroed Progress record together."""

    @abstractmethod
    async def update_user(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]: ...

    # Farms
    @abstractmethod
    async def get_farm(self, farm_id: str) -> Optional[Farm]: ...

    @abstractmethod
    async def get_farm_by_user_id(self, user_id: str) -> Optional[Farm]: ...

    @abstractmethod
    async def create_farm(self, data: FarmCreate) -> Farm: ...

    @abstractmethod
    async def update_farm(self, farm_id: str, changes: Dict[str, Any]) -> Optional[Farm]: ...

    # Quests
    @abstractmethod
    async def get_quest(self, quest_id: str) -> Optional[Quest]: ...

    @abstractmethod
    async def list_quests(
        self, category: Optional[str] = None, active_only: bool = True
    ) -> List[Quest]: ...

    @abstractmethod
    async def create_quest(self, data: QuestCreate) -> Quest: ...

    @abstractmethod
    async def update_quest(self, quest_id: str, changes: Dict[str, Any]) -> Optional[Quest]: ...

    # User quests
    @abstractmethod
    async def get_user_quest(self, user_quest_id: str) -> Optional[UserQuest]: ...

    @abstractmethod
    async def find_user_quest(self, user_id: str, quest_id: str) -> Optional[UserQuest]: ...

    @abstractmethod
    async def list_user_quests(self, user_id: str) -> List[UserQuest]: ...

    @abstractmethod
    async def create_user_quest(
        self, user_id: str, quest_id: str, status: str, progress: List[bool]
    ) -> UserQuest: ...

    @abstractmethod
    async def update_user_quest(
        self, user_quest_id: str, changes: Dict[str, Any]
    ) -> Optional[UserQuest]: ...

    @abstractmethod
    async def record_completion(
        self,
        user_quest_id: str,
        completed_at: datetime,
        progress_changes: Dict[str, Any],
    ) -> Optional[UserQuest]:
        """
        Mark a user quest completed and apply ``progress_changes`` to the
        owner's Progress in one step. Returns the updated user quest, or
        ``None`` if either record is missing (nothing is written then).
        Raises ``Conflict`` without writing if the user quest is no longer
        ``in_progress``, so a completion is only ever credited once.
        """

    # Progress
    @abstractmethod
    async def get_progress(self, user_id: str) -> Optional[Progress]: ...

    @abstractmethod
    async def update_progress(
        self, user_id: str, changes: Dict[str, Any]
    ) -> Optional[Progress]:
        """
        Overwrite Progress fields directly. Administrative corrections and
        test setup only; gameplay changes Progress through
        ``record_completion``.
        """

    # Schemes
    @abstractmethod
    async def get_scheme(self, scheme_id: str) -> Optional[Scheme]: ...

    @abstractmethod
    async def list_schemes(
        self, category: Optional[str] = None, active_only: bool = True
    ) -> List[Scheme]: ...

    @abstractmethod
    async def create_scheme(self, data: SchemeCreate) -> Scheme: ...

    # User schemes
    @abstractmethod
    async def get_user_scheme(self, user_scheme_id: str) -> Optional[UserScheme]: ...

    @abstractmethod
    async def find_user_scheme(self, user_id: str, scheme_id: str) -> Optional[UserScheme]: ...

    @abstractmethod
    async def list_user_schemes(self, user_id: str) -> List[UserScheme]: ...

    @abstractmethod
    async def create_user_scheme(
        self,
        user_id: str,
        scheme_id: str,
        status: str,
        application_data: Dict[str, Any],
        applied_at: Optional[datetime],
    ) -> UserScheme: ...

    @abstractmethod
    async def update_user_scheme(
        self, user_scheme_id: str, changes: Dict[str, Any]
    ) -> Optional[UserScheme]: ...

    # Market prices
    @abstractmethod
    async def list_market_prices(
        self, district: Optional[str] = None, crop: Optional[str] = None
    ) -> List[MarketPrice]:
        """Quotes matching the filters, in insertion order."""

    @abstractmethod
    async def create_market_price(self, data: MarketPriceCreate) -> MarketPrice: ...
