"""
WikiMaps Backend: User Profile and Favourites Routes
====================================================

    GET  /users/{user_id}                                     profile view
    POST /users/{user_id}/favourites                          add favourite (form: map_id)
    POST /users/{user_id}/favourites/{favourite_id}/delete    remove favourite

Favourite routes only act on the session user's own list; another user's
id in the path is a 403.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from wikimaps.database import get_db_session
from wikimaps.dependencies import require_user
from wikimaps.exceptions import PermissionDeniedError, ValidationError
from wikimaps.schemas.user import UserProfile
from wikimaps.services.favourite_service import favourite_service
from wikimaps.services.user_service import user_service
from wikimaps.templating import render

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def _ensure_self(path_user_id: str, session_user_id: str) -> None:
    if path_user_id != session_user_id:
        raise PermissionDeniedError(
            message="You can only change your own favourites.",
            context={"path_user_id": path_user_id, "user_id": session_user_id},
        )


@router.get("/{profile_id}", summary="User profile")
async def profile(
    profile_id: str,
    request: Request,
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    found = await user_service.get_user(db, profile_id)
    favourites = await favourite_service.list_favourites(db, profile_id)
    return render(
        request,
        "profile",
        {
            "profile": found or UserProfile.placeholder(profile_id),
            "favourites": favourites,
        },
    )


@router.post("/{profile_id}/favourites", summary="Add a favourite map")
async def add_favourite(
    profile_id: str,
    request: Request,
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    _ensure_self(profile_id, user_id)
    form = await request.form()
    raw_map_id = form.get("map_id")
    try:
        map_id = int(str(raw_map_id))
    except (TypeError, ValueError):
        raise ValidationError(message="map_id must be a map identifier", field="map_id")

    await favourite_service.add_favourite(db, user_id, map_id)
    return RedirectResponse(url=f"/users/{user_id}", status_code=303)


@router.post(
    "/{profile_id}/favourites/{favourite_id}/delete",
    summary="Remove a favourite map",
)
async def remove_favourite(
    profile_id: str,
    favourite_id: int,
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    _ensure_self(profile_id, user_id)
    await favourite_service.remove_favourite(db, user_id, favourite_id)
    return RedirectResponse(url=f"/users/{user_id}", status_code=303)
