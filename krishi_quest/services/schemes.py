# krishi_quest/services/schemes.py
import logging
from typing import Dict, List, Set

from krishi_quest.errors import Conflict, NotFound, ValidationError
from krishi_quest.repository import Repository
from krishi_quest.schemas import SchemeStatus, UserScheme, UserSchemeCreate, UserSchemeUpdate
from krishi_quest.utils import utcnow

logger = logging.getLogger(__name__)

# allowed status moves for an application
TRANSITIONS: Dict[SchemeStatus, Set[SchemeStatus]] = {
    SchemeStatus.NOT_STARTED: {SchemeStatus.IN_PROGRESS},
    SchemeStatus.IN_PROGRESS: {SchemeStatus.APPROVED, SchemeStatus.REJECTED},
    SchemeStatus.APPROVED: set(),
    SchemeStatus.REJECTED: set(),
}


async def apply_for_scheme(repo: Repository, payload: UserSchemeCreate) -> UserScheme:
    if await repo.get_user(payload.user_id) is None:
        raise NotFound("User not found")

    scheme = await repo.get_scheme(payload.scheme_id)
    if scheme is None:
        raise NotFound("Scheme not found")
    if not scheme.is_active:
        raise ValidationError("Scheme is not active")

    if await repo.find_user_scheme(payload.user_id, payload.scheme_id) is not None:
        logger.warning(
            "apply_for_scheme duplicate user=%s scheme=%s", payload.user_id, payload.scheme_id
        )
        raise Conflict("Scheme application already exists for this user")

    application = await repo.create_user_scheme(
        payload.user_id,
        payload.scheme_id,
        SchemeStatus.IN_PROGRESS,
        payload.application_data,
        utcnow(),
    )
    logger.info(
        "scheme application started user=%s scheme=%s id=%s",
        payload.user_id, payload.scheme_id, application.id,
    )
    return application


async def update_application(
    repo: Repository, user_scheme_id: str, payload: UserSchemeUpdate
) -> UserScheme:
    """
    Merge new application data and/or move the status along
    not_started -> in_progress -> approved | rejected.
    """
    current = await repo.get_user_scheme(user_scheme_id)
    if current is None:
        raise NotFound("User scheme not found")

    changes = {}
    if payload.application_data is not None:
        merged = dict(current.application_data)
        merged.update(payload.application_data)
        changes["application_data"] = merged

    if payload.status is not None and payload.status != current.status:
        if payload.status not in TRANSITIONS[current.status]:
            raise Conflict(
                f"Cannot move application from '{current.status.value}' to '{payload.status.value}'"
            )
        changes["status"] = payload.status
        if payload.status == SchemeStatus.IN_PROGRESS and current.applied_at is None:
            changes["applied_at"] = utcnow()
        if payload.status == SchemeStatus.APPROVED:
            changes["approved_at"] = utcnow()

    if not changes:
        return current

    updated = await repo.update_user_scheme(user_scheme_id, changes)
    if updated is None:
        raise NotFound("User scheme not found")
    if "status" in changes:
        logger.info("scheme application id=%s status=%s", user_scheme_id, updated.status.value)
    return updated


async def list_applications(repo: Repository, user_id: str) -> List[UserScheme]:
    return await repo.list_user_schemes(user_id)
