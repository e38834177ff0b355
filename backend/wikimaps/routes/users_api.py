"""
WikiMaps Backend: Users API Sub-router
======================================

JSON endpoints mounted under /api/users. Public.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from wikimaps.database import get_db_session
from wikimaps.exceptions import NotFoundError
from wikimaps.schemas.common import ErrorResponse
from wikimaps.schemas.user import UserProfile
from wikimaps.services.user_service import user_service

router = APIRouter(prefix="/api/users", tags=["Users API"])


@router.get("", response_model=List[UserProfile], summary="List users")
async def list_users(db: AsyncSession = Depends(get_db_session)) -> List[UserProfile]:
    return await user_service.list_users(db)


@router.get(
    "/{user_id}",
    response_model=UserProfile,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Get one user",
)
async def get_user(user_id: str, db: AsyncSession = Depends(get_db_session)) -> UserProfile:
    found = await user_service.get_user(db, user_id)
    if found is None:
        raise NotFoundError(resource="user", resource_id=user_id)
    return found
