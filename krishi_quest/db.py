# krishi_quest/db.py
"""
SQL-backed repository on SQLAlchemy's async engine.

Each repository call opens its own session and transaction. The default URL
points at a SQLite file next to the package (``sqlite+aiosqlite``); any
async SQLAlchemy URL can be supplied through ``DATABASE_URL``.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from krishi_quest.config.thresholds import DEFAULT_LEVEL
from krishi_quest.errors import Conflict
from krishi_quest.models import (
    Base,
    FarmRow,
    MarketPriceRow,
    ProgressRow,
    QuestRow,
    SchemeRow,
    UserQuestRow,
    UserRow,
    UserSchemeRow,
)
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

logger = logging.getLogger(__name__)


def _plain(value: Any) -> Any:
    # enum members go in as their string value
    return value.value if isinstance(value, Enum) else value


def _plain_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
    return {k: _plain(v) for k, v in changes.items()}


class SqlRepository(Repository):
    def __init__(self, database_url: str, echo: bool = False) -> None:
        super().__init__()
        self.database_url = database_url
        self.engine = create_async_engine(database_url, echo=echo, future=True)
        self.SessionLocal = sessionmaker(
            bind=self.engine, class_=AsyncSession, expire_on_commit=False
        )
        logger.info("SqlRepository using DATABASE_URL = %s", database_url)

    async def init(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self.engine.dispose()

    # ----------------------------
    # Generic helpers
    # ----------------------------
    async def _first(self, schema, stmt):
        async with self.SessionLocal() as session:
            row = (await session.execute(stmt)).scalars().first()
            return schema.model_validate(row) if row is not None else None

    async def _all(self, schema, stmt) -> List[Any]:
        async with self.SessionLocal() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [schema.model_validate(r) for r in rows]

    async def _insert(self, schema, row):
        async with self.SessionLocal() as session:
            async with session.begin():
                session.add(row)
        return schema.model_validate(row)

    async def _patch(self, schema, row_cls, key_col, key, changes: Dict[str, Any]):
        async with self.SessionLocal() as session:
            async with session.begin():
                row = (
                    await session.execute(select(row_cls).where(key_col == key))
                ).scalar_one_or_none()
                if row is None:
                    return None
                for field, value in _plain_changes(changes).items():
                    setattr(row, field, value)
        return schema.model_validate(row)

    # ----------------------------
    # Users
    # ----------------------------
    async def get_user(self, user_id: str) -> Optional[User]:
        return await self._first(User, select(UserRow).where(UserRow.id == user_id))

    async def get_user_by_mobile(self, mobile_number: str) -> Optional[User]:
        return await self._first(
            User, select(UserRow).where(UserRow.mobile_number == mobile_number)
        )

    async def list_users(self) -> List[User]:
        return await self._all(User, select(UserRow).order_by(UserRow.created_at))

    async def create_user(self, data: UserCreate) -> User:
        row = UserRow(id=new_id(), created_at=utcnow(), **data.model_dump())
        progress = ProgressRow(
            id=new_id(),
            user_id=row.id,
            level=DEFAULT_LEVEL,
            total_xp=0,
            total_coins=0,
            sustainability_score=0,
            badges=[],
            completed_quests=0,
        )
        try:
            async with self.SessionLocal() as session:
                async with session.begin():
                    session.add(row)
                    await session.flush()
                    session.add(progress)
        except IntegrityError:
            logger.warning("create_user rejected duplicate mobile=%s", data.mobile_number)
            raise Conflict("Mobile number already registered")
        return User.model_validate(row)

    async def update_user(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]:
        return await self._patch(User, UserRow, UserRow.id, user_id, changes)

    # ----------------------------
    # Farms
    # ----------------------------
    async def get_farm(self, farm_id: str) -> Optional[Farm]:
        return await self._first(Farm, select(FarmRow).where(FarmRow.id == farm_id))

    async def get_farm_by_user_id(self, user_id: str) -> Optional[Farm]:
        return await self._first(Farm, select(FarmRow).where(FarmRow.user_id == user_id))

    async def create_farm(self, data: FarmCreate) -> Farm:
        try:
            return await self._insert(
                Farm, FarmRow(id=new_id(), created_at=utcnow(), **data.model_dump())
            )
        except IntegrityError:
            raise Conflict("User already has a farm")

    async def update_farm(self, farm_id: str, changes: Dict[str, Any]) -> Optional[Farm]:
        return await self._patch(Farm, FarmRow, FarmRow.id, farm_id, changes)

    # ----------------------------
    # Quests
    # ----------------------------
    async def get_quest(self, quest_id: str) -> Optional[Quest]:
        return await self._first(Quest, select(QuestRow).where(QuestRow.id == quest_id))

    async def list_quests(
        self, category: Optional[str] = None, active_only: bool = True
    ) -> List[Quest]:
        stmt = select(QuestRow)
        if active_only:
            stmt = stmt.where(QuestRow.is_active.is_(True))
        if category:
            stmt = stmt.where(QuestRow.category == category)
        return await self._all(Quest, stmt.order_by(QuestRow.created_at))

    async def create_quest(self, data: QuestCreate) -> Quest:
        return await self._insert(
            Quest, QuestRow(id=new_id(), created_at=utcnow(), **data.model_dump())
        )

    async def update_quest(self, quest_id: str, changes: Dict[str, Any]) -> Optional[Quest]:
        return await self._patch(Quest, QuestRow, QuestRow.id, quest_id, changes)

    # ----------------------------
    # User quests
    # ----------------------------
    async def get_user_quest(self, user_quest_id: str) -> Optional[UserQuest]:
        return await self._first(
            UserQuest, select(UserQuestRow).where(UserQuestRow.id == user_quest_id)
        )

    async def find_user_quest(self, user_id: str, quest_id: str) -> Optional[UserQuest]:
        return await self._first(
            UserQuest,
            select(UserQuestRow).where(
                UserQuestRow.user_id == user_id, UserQuestRow.quest_id == quest_id
            ),
        )

    async def list_user_quests(self, user_id: str) -> List[UserQuest]:
        return await self._all(
            UserQuest,
            select(UserQuestRow)
            .where(UserQuestRow.user_id == user_id)
            .order_by(UserQuestRow.created_at),
        )

    async def create_user_quest(
        self, user_id: str, quest_id: str, status: str, progress: List[bool]
    ) -> UserQuest:
        row = UserQuestRow(
            id=new_id(),
            user_id=user_id,
            quest_id=quest_id,
            status=_plain(status),
            progress=list(progress),
            completed_at=None,
            created_at=utcnow(),
        )
        try:
            return await self._insert(UserQuest, row)
        except IntegrityError:
            raise Conflict("Quest already started for this user")

    async def update_user_quest(
        self, user_quest_id: str, changes: Dict[str, Any]
    ) -> Optional[UserQuest]:
        return await self._patch(
            UserQuest, UserQuestRow, UserQuestRow.id, user_quest_id, changes
        )

    async def record_completion(
        self,
        user_quest_id: str,
        completed_at: datetime,
        progress_changes: Dict[str, Any],
    ) -> Optional[UserQuest]:
        async with self.SessionLocal() as session:
            async with session.begin():
                uq = await session.get(UserQuestRow, user_quest_id)
                if uq is None:
                    return None
                progress = (
                    await session.execute(
                        select(ProgressRow).where(ProgressRow.user_id == uq.user_id)
                    )
                ).scalar_one_or_none()
                if progress is None:
                    return None
                # conditional claim; a concurrent writer in another process loses here
                claimed = await session.execute(
                    update(UserQuestRow)
                    .where(
                        UserQuestRow.id == user_quest_id,
                        UserQuestRow.status == QuestStatus.IN_PROGRESS.value,
                    )
                    .values(status=QuestStatus.COMPLETED.value, completed_at=completed_at)
                )
                if claimed.rowcount != 1:
                    raise Conflict("User quest is no longer in progress")
                uq.status = QuestStatus.COMPLETED.value
                uq.completed_at = completed_at
                for field, value in _plain_changes(progress_changes).items():
                    setattr(progress, field, value)
        return UserQuest.model_validate(uq)

    # ----------------------------
    # Progress
    # ----------------------------
    async def get_progress(self, user_id: str) -> Optional[Progress]:
        return await self._first(
            Progress, select(ProgressRow).where(ProgressRow.user_id == user_id)
        )

    async def update_progress(
        self, user_id: str, changes: Dict[str, Any]
    ) -> Optional[Progress]:
        return await self._patch(
            Progress, ProgressRow, ProgressRow.user_id, user_id, changes
        )

    # ----------------------------
    # Schemes
    # ----------------------------
    async def get_scheme(self, scheme_id: str) -> Optional[Scheme]:
        return await self._first(Scheme, select(SchemeRow).where(SchemeRow.id == scheme_id))

    async def list_schemes(
        self, category: Optional[str] = None, active_only: bool = True
    ) -> List[Scheme]:
        stmt = select(SchemeRow)
        if active_only:
            stmt = stmt.where(SchemeRow.is_active.is_(True))
        if category:
            stmt = stmt.where(SchemeRow.category == category)
        return await self._all(Scheme, stmt.order_by(SchemeRow.created_at))

    async def create_scheme(self, data: SchemeCreate) -> Scheme:
        return await self._insert(
            Scheme, SchemeRow(id=new_id(), created_at=utcnow(), **data.model_dump())
        )

    # ----------------------------
    # User schemes
    # ----------------------------
    async def get_user_scheme(self, user_scheme_id: str) -> Optional[UserScheme]:
        return await self._first(
            UserScheme, select(UserSchemeRow).where(UserSchemeRow.id == user_scheme_id)
        )

    async def find_user_scheme(self, user_id: str, scheme_id: str) -> Optional[UserScheme]:
        return await self._first(
            UserScheme,
            select(UserSchemeRow).where(
                UserSchemeRow.user_id == user_id, UserSchemeRow.scheme_id == scheme_id
            ),
        )

    async def list_user_schemes(self, user_id: str) -> List[UserScheme]:
        return await self._all(
            UserScheme,
            select(UserSchemeRow)
            .where(UserSchemeRow.user_id == user_id)
            .order_by(UserSchemeRow.created_at),
        )

    async def create_user_scheme(
        self,
        user_id: str,
        scheme_id: str,
        status: str,
        application_data: Dict[str, Any],
        applied_at: Optional[datetime],
    ) -> UserScheme:
        row = UserSchemeRow(
            id=new_id(),
            user_id=user_id,
            scheme_id=scheme_id,
            status=_plain(status),
            application_data=dict(application_data),
            applied_at=applied_at,
            approved_at=None,
            created_at=utcnow(),
        )
        try:
            return await self._insert(UserScheme, row)
        except IntegrityError:
            raise Conflict("Scheme application already exists for this user")

    async def update_user_scheme(
        self, user_scheme_id: str, changes: Dict[str, Any]
    ) -> Optional[UserScheme]:
        return await self._patch(
            UserScheme, UserSchemeRow, UserSchemeRow.id, user_scheme_id, changes
        )

    # ----------------------------
    # Market prices
    # ----------------------------
    async def list_market_prices(
        self, district: Optional[str] = None, crop: Optional[str] = None
    ) -> List[MarketPrice]:
        stmt = select(MarketPriceRow)
        if district:
            stmt = stmt.where(MarketPriceRow.district == district)
        if crop:
            stmt = stmt.where(MarketPriceRow.crop == crop)
        return await self._all(MarketPrice, stmt.order_by(MarketPriceRow.seq))

    async def create_market_price(self, data: MarketPriceCreate) -> MarketPrice:
        return await self._insert(
            MarketPrice, MarketPriceRow(id=new_id(), **data.model_dump())
        )
