# krishi_quest/models.py
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

from krishi_quest.utils import new_id

Base = declarative_base()


def _now() -> datetime:
    return datetime.now(timezone.utc)


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    mobile_number = Column(String, nullable=False, unique=True, index=True)
    age_group = Column(String, nullable=False)
    language = Column(String, nullable=False, default="hi")
    created_at = Column(DateTime(timezone=True), default=_now, index=True)


class FarmRow(Base):
    __tablename__ = "farms"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, unique=True)

    # location hierarchy
    state = Column(String, nullable=False)
    district = Column(String, nullable=False, index=True)
    taluk = Column(String, nullable=False)
    gram_panchayat = Column(String, nullable=False, index=True)
    village = Column(String, nullable=False)

    farm_size = Column(String, nullable=False)
    soil_type = Column(String, nullable=False)
    primary_crops = Column(JSON, nullable=False, default=list)
    water_source = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now)

    __table_args__ = (
        Index("ix_farms_district_gram_panchayat", "district", "gram_panchayat"),
    )


class QuestRow(Base):
    __tablename__ = "quests"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String, nullable=False, index=True)
    difficulty = Column(String, nullable=False)
    coin_reward = Column(Integer, nullable=False)
    xp_reward = Column(Integer, nullable=False)
    badge_reward = Column(String, nullable=True)
    steps = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_now, index=True)


class UserQuestRow(Base):
    __tablename__ = "user_quests"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    quest_id = Column(String(36), ForeignKey("quests.id"), nullable=False)
    status = Column(String, nullable=False, default="not_started")
    progress = Column(JSON, nullable=False, default=list)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now, index=True)

    # one attempt per (user, quest)
    __table_args__ = (
        UniqueConstraint("user_id", "quest_id", name="ux_user_quests_user_quest"),
    )


class ProgressRow(Base):
    __tablename__ = "user_progress"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, unique=True)
    level = Column(Integer, nullable=False, default=1)
    total_xp = Column(Integer, nullable=False, default=0)
    total_coins = Column(Integer, nullable=False, default=0)
    sustainability_score = Column(Integer, nullable=False, default=0, index=True)
    badges = Column(JSON, nullable=False, default=list)
    completed_quests = Column(Integer, nullable=False, default=0)


class SchemeRow(Base):
    __tablename__ = "schemes"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String, nullable=False, index=True)
    eligibility_criteria = Column(JSON, nullable=False, default=list)
    benefits = Column(Text, nullable=False)
    application_steps = Column(JSON, nullable=False, default=list)
    documents_required = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_now, index=True)


class UserSchemeRow(Base):
    __tablename__ = "user_schemes"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    scheme_id = Column(String(36), ForeignKey("schemes.id"), nullable=False)
    status = Column(String, nullable=False, default="not_started")
    application_data = Column(JSON, nullable=False, default=dict)
    applied_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now, index=True)

    __table_args__ = (
        UniqueConstraint("user_id", "scheme_id", name="ux_user_schemes_user_scheme"),
    )


class MarketPriceRow(Base):
    __tablename__ = "market_prices"

    # integer sequence keeps insertion order for tie-breaks; id is the public key
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), nullable=False, unique=True, default=new_id)
    crop = Column(String, nullable=False, index=True)
    variety = Column(String, nullable=True)
    price = Column(Integer, nullable=False)
    unit = Column(String, nullable=False, default="quintal")
    mandi = Column(String, nullable=False)
    district = Column(String, nullable=False, index=True)
    state = Column(String, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, index=True)
    trend = Column(String, nullable=True)

    __table_args__ = (
        Index("ix_market_prices_crop_date", "crop", "date"),
    )
