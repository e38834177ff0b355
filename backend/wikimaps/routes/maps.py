"""
WikiMaps Backend: Map Routes
============================

What:  Map listing, creation, single-map views and the points JSON feed.

Route table (declaration order matters: /maps/new before /maps/{map_id}):
    GET  /                       public     all_maps view (get_map_names)
    POST /maps/{map_id}/delete   protected  delete own map → 303 /
    GET  /maps/new               protected  init_map form
    POST /maps/new               protected  create_map → create_map view
    GET  /maps/{map_id}/edit     protected  edit_map form
    GET  /maps/{map_id}          public     view_map (404 if absent)
    GET  /maps/{map_id}/json     public     points as JSON array (404 if absent)
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from wikimaps.database import get_db_session
from wikimaps.dependencies import current_user, require_user
from wikimaps.exceptions import NotFoundError
from wikimaps.schemas.common import ErrorResponse
from wikimaps.schemas.map import PointResponse
from wikimaps.services.map_service import map_service
from wikimaps.templating import render

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Maps"])


@router.get("/", summary="List all maps")
async def all_maps(
    request: Request,
    user_id: Optional[str] = Depends(current_user),
    db: AsyncSession = Depends(get_db_session),
):
    maps = await map_service.get_map_names(db)
    return render(request, "all_maps", {"maps": maps})


@router.post("/maps/{map_id}/delete", summary="Delete a map")
async def delete_map(
    map_id: int,
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    await map_service.delete_map(db, map_id, user_id)
    return RedirectResponse(url="/", status_code=303)


@router.get("/maps/new", summary="New map form")
async def new_map_form(request: Request, user_id: str = Depends(require_user)):
    return render(request, "init_map")


@router.post("/maps/new", summary="Create a map")
async def create_map(
    request: Request,
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    form = await request.form()
    # Owner is always the session identity, whatever the form says
    fields = {
        "title": form.get("title"),
        "description": form.get("description") or "",
        "user_id": user_id,
    }
    map_id = await map_service.create_map(db, fields)
    return render(
        request,
        "create_map",
        {"map": {"id": map_id, "title": fields["title"]}},
    )


@router.get("/maps/{map_id}/edit", summary="Edit map form")
async def edit_map_form(
    map_id: int,
    request: Request,
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    found = await map_service.get_map(db, map_id)
    return render(request, "edit_map", {"map": found})


@router.get("/maps/{map_id}", summary="Single map page")
async def view_map(
    map_id: int,
    request: Request,
    user_id: Optional[str] = Depends(current_user),
    db: AsyncSession = Depends(get_db_session),
):
    found = await map_service.get_map(db, map_id)
    return render(request, "view_map", {"map": found})


@router.get(
    "/maps/{map_id}/json",
    response_model=List[PointResponse],
    responses={404: {"description": "Map not found", "model": ErrorResponse}},
    summary="Points of a map as JSON",
)
async def map_points_json(
    map_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> List[PointResponse]:
    lookup = await map_service.get_points_by_map_id(db, map_id)
    if not lookup.exists:
        raise NotFoundError(resource="map", resource_id=str(map_id))
    return lookup.points
