# krishi_quest/routes/schemes.py
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from krishi_quest.deps import get_repository
from krishi_quest.repository import Repository
from krishi_quest.schemas import Scheme, UserScheme, UserSchemeCreate, UserSchemeUpdate
from krishi_quest.services import catalog, schemes

router = APIRouter()


@router.get("/schemes", response_model=List[Scheme], tags=["schemes"])
async def list_schemes(
    category: Optional[str] = Query(None),
    repo: Repository = Depends(get_repository),
):
    return await catalog.list_schemes(repo, category)


@router.get("/schemes/{scheme_id}", response_model=Scheme, tags=["schemes"])
async def get_scheme(scheme_id: str, repo: Repository = Depends(get_repository)):
    return await catalog.get_scheme(repo, scheme_id)


@router.get("/user-schemes/{user_id}", response_model=List[UserScheme], tags=["user-schemes"])
async def list_user_schemes(user_id: str, repo: Repository = Depends(get_repository)):
    return await schemes.list_applications(repo, user_id)


@router.post("/user-schemes", response_model=UserScheme, tags=["user-schemes"])
async def apply_for_scheme(
    payload: UserSchemeCreate = Body(...),
    repo: Repository = Depends(get_repository),
):
    """Start an application; it begins ``in_progress`` with appliedAt set."""
    return await schemes.apply_for_scheme(repo, payload)


@router.patch("/user-schemes/{user_scheme_id}", response_model=UserScheme, tags=["user-schemes"])
async def update_application(
    user_scheme_id: str,
    payload: UserSchemeUpdate = Body(...),
    repo: Repository = Depends(get_repository),
):
    """
    Merge application data and/or change status. Allowed moves:
    not_started -> in_progress -> approved | rejected.
    """
    return await schemes.update_application(repo, user_scheme_id, payload)
