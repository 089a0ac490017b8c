# krishi_quest/services/profiles.py
"""Users, their farms and their progress records."""

import logging

from krishi_quest.errors import Conflict, InconsistentState, NotFound
from krishi_quest.repository import Repository
from krishi_quest.schemas import Farm, FarmCreate, FarmUpdate, Progress, User, UserCreate, UserUpdate

logger = logging.getLogger(__name__)


async def create_user(repo: Repository, payload: UserCreate) -> User:
    if await repo.get_user_by_mobile(payload.mobile_number) is not None:
        raise Conflict("Mobile number already registered")
    user = await repo.create_user(payload)
    logger.info("user created id=%s", user.id)
    return user


async def get_user(repo: Repository, user_id: str) -> User:
    user = await repo.get_user(user_id)
    if user is None:
        raise NotFound("User not found")
    return user


async def get_user_by_mobile(repo: Repository, mobile_number: str) -> User:
    user = await repo.get_user_by_mobile(mobile_number)
    if user is None:
        raise NotFound("User not found")
    return user


async def update_user(repo: Repository, user_id: str, payload: UserUpdate) -> User:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        return await get_user(repo, user_id)
    user = await repo.update_user(user_id, changes)
    if user is None:
        raise NotFound("User not found")
    return user


async def create_farm(repo: Repository, payload: FarmCreate) -> Farm:
    if await repo.get_user(payload.user_id) is None:
        raise NotFound("User not found")
    if await repo.get_farm_by_user_id(payload.user_id) is not None:
        raise Conflict("User already has a farm")
    farm = await repo.create_farm(payload)
    logger.info(
        "farm created id=%s user=%s district=%s gram_panchayat=%s",
        farm.id, farm.user_id, farm.district, farm.gram_panchayat,
    )
    return farm


async def get_farm_for_user(repo: Repository, user_id: str) -> Farm:
    farm = await repo.get_farm_by_user_id(user_id)
    if farm is None:
        raise NotFound("Farm not found")
    return farm


async def update_farm(repo: Repository, farm_id: str, payload: FarmUpdate) -> Farm:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        farm = await repo.get_farm(farm_id)
    else:
        farm = await repo.update_farm(farm_id, changes)
    if farm is None:
        raise NotFound("Farm not found")
    return farm


async def get_progress(repo: Repository, user_id: str) -> Progress:
    progress = await repo.get_progress(user_id)
    if progress is not None:
        return progress
    if await repo.get_user(user_id) is not None:
        # every user gets a progress record at creation
        logger.error("user=%s exists without a progress record", user_id)
        raise InconsistentState("User progress missing")
    raise NotFound("User progress not found")
