# krishi_quest/schemas.py
"""
Pydantic models for every record the API stores or returns.

Wire format is camelCase (``userId``, ``gramPanchayat``) to match the web
client; Python attributes stay snake_case. ``populate_by_name`` lets the
services build records with either spelling, and ``from_attributes`` lets the
SQL repository validate ORM rows directly.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from krishi_quest.config.thresholds import (
    DEFAULT_LANGUAGE,
    DEFAULT_LEVEL,
    DEFAULT_PRICE_UNIT,
)

AgeGroup = Literal["18-30", "31-45", "46-60", "60+"]
Language = Literal["en", "hi", "te", "ta"]
Trend = Literal["up", "down", "stable"]


class QuestStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class SchemeStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    APPROVED = "approved"
    REJECTED = "rejected"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _strip_required(v: str) -> str:
    v = " ".join(str(v).split())
    if not v:
        raise ValueError("must not be blank")
    return v


# -----------------------------
# Users
# -----------------------------
class UserCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=120)
    mobile_number: str = Field(..., pattern=r"^\d{10}$")
    age_group: AgeGroup
    language: Language = DEFAULT_LANGUAGE

    @field_validator("name")
    @classmethod
    def clean_name(cls, v: str) -> str:
        return _strip_required(v)


class UserUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    age_group: Optional[AgeGroup] = None
    language: Optional[Language] = None

    @field_validator("name")
    @classmethod
    def clean_name(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _strip_required(v)


class User(CamelModel):
    id: str
    name: str
    mobile_number: str
    age_group: str
    language: str = DEFAULT_LANGUAGE
    created_at: datetime


# -----------------------------
# Farms
# -----------------------------
class FarmFields(CamelModel):
    state: str = Field(..., min_length=1)
    district: str = Field(..., min_length=1)
    taluk: str = Field(..., min_length=1)
    gram_panchayat: str = Field(..., min_length=1)
    village: str = Field(..., min_length=1)
    farm_size: str = Field(..., min_length=1)
    soil_type: str = Field(..., min_length=1)
    primary_crops: List[str] = Field(..., min_length=1)
    water_source: str = Field(..., min_length=1)


class FarmCreate(FarmFields):
    user_id: str = Field(..., min_length=1)


class FarmUpdate(CamelModel):
    state: Optional[str] = Field(None, min_length=1)
    district: Optional[str] = Field(None, min_length=1)
    taluk: Optional[str] = Field(None, min_length=1)
    gram_panchayat: Optional[str] = Field(None, min_length=1)
    village: Optional[str] = Field(None, min_length=1)
    farm_size: Optional[str] = Field(None, min_length=1)
    soil_type: Optional[str] = Field(None, min_length=1)
    primary_crops: Optional[List[str]] = Field(None, min_length=1)
    water_source: Optional[str] = Field(None, min_length=1)


class Farm(FarmFields):
    id: str
    user_id: str
    created_at: datetime


# -----------------------------
# Quests
# -----------------------------
class QuestCreate(CamelModel):
    title: str = Field(..., min_length=1)
    description: str
    category: str = Field(..., min_length=1)
    difficulty: str
    coin_reward: int = Field(..., ge=0)
    xp_reward: int = Field(..., ge=0)
    badge_reward: Optional[str] = None
    steps: List[str] = Field(..., min_length=1)
    is_active: bool = True


class QuestUpdate(CamelModel):
    is_active: bool


class Quest(QuestCreate):
    id: str
    created_at: datetime


class UserQuestCreate(CamelModel):
    user_id: str = Field(..., min_length=1)
    quest_id: str = Field(..., min_length=1)


class UserQuestStepsUpdate(CamelModel):
    progress: List[bool]


class UserQuest(CamelModel):
    id: str
    user_id: str
    quest_id: str
    status: QuestStatus = QuestStatus.NOT_STARTED
    progress: List[bool] = Field(default_factory=list)
    completed_at: Optional[datetime] = None
    created_at: datetime

    @property
    def steps_done(self) -> int:
        return sum(1 for p in self.progress if p)


class Progress(CamelModel):
    id: str
    user_id: str
    level: int = DEFAULT_LEVEL
    total_xp: int = 0
    total_coins: int = 0
    sustainability_score: int = 0
    badges: List[str] = Field(default_factory=list)
    completed_quests: int = 0


# -----------------------------
# Schemes
# -----------------------------
class SchemeCreate(CamelModel):
    name: str = Field(..., min_length=1)
    description: str
    category: str = Field(..., min_length=1)
    eligibility_criteria: List[str]
    benefits: str
    application_steps: List[str]
    documents_required: List[str]
    is_active: bool = True


class Scheme(SchemeCreate):
    id: str


class UserSchemeCreate(CamelModel):
    user_id: str = Field(..., min_length=1)
    scheme_id: str = Field(..., min_length=1)
    application_data: Dict[str, Any] = Field(default_factory=dict)


class UserSchemeUpdate(CamelModel):
    status: Optional[SchemeStatus] = None
    application_data: Optional[Dict[str, Any]] = None


class UserScheme(CamelModel):
    id: str
    user_id: str
    scheme_id: str
    status: SchemeStatus = SchemeStatus.NOT_STARTED
    application_data: Dict[str, Any] = Field(default_factory=dict)
    applied_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None


# -----------------------------
# Market prices
# -----------------------------
class MarketPriceCreate(CamelModel):
    crop: str = Field(..., min_length=1)
    variety: Optional[str] = None
    price: int = Field(..., ge=0)
    unit: str = DEFAULT_PRICE_UNIT
    mandi: str = Field(..., min_length=1)
    district: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    date: datetime
    trend: Optional[Trend] = None

    @field_validator("date")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # stored as UTC; quotes without an offset are taken as UTC
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class MarketPrice(MarketPriceCreate):
    id: str


# -----------------------------
# Leaderboard
# -----------------------------
class LeaderboardEntry(CamelModel):
    user: User
    progress: Progress
