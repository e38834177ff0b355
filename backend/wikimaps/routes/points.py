"""
WikiMaps Backend: Point Routes
==============================

All point routes are protected and answer with JSON.

    POST /maps/{map_id}/points                        add_point
         200 + point JSON on success
         404 + failure reason on any failure (malformed body, unknown map,
             body map_id differing from the URL, store error)
    POST /maps/{map_id}/points/{point_id}             edit point (partial update)
         403 unless the caller wrote the point or owns the map
    POST /maps/{map_id}/points/{point_id}/delete      delete point

Form fields: title, description, image, map_id, latitude|lat, longitude|long.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from wikimaps.database import get_db_session
from wikimaps.dependencies import require_user
from wikimaps.middleware.request_id import request_id_var
from wikimaps.schemas.common import ErrorResponse
from wikimaps.schemas.map import PointResponse
from wikimaps.schemas.results import Outcome
from wikimaps.services.map_service import map_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/maps/{map_id}/points", tags=["Points"])


@router.post(
    "",
    response_model=PointResponse,
    responses={404: {"description": "Point was not added", "model": ErrorResponse}},
    summary="Add a point to a map",
)
async def add_point(
    map_id: int,
    request: Request,
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    form = await request.form()
    fields = {key: value for key, value in form.items()}
    fields["user_id"] = user_id

    body_map_id = fields.get("map_id")
    if body_map_id is not None and str(body_map_id).strip() != str(map_id):
        outcome: Outcome[PointResponse] = Outcome.failure(
            f"map_id {body_map_id!r} does not match map {map_id}"
        )
    else:
        outcome = await map_service.add_point(db, fields)

    if not outcome.ok:
        logger.warning("Point not added to map %s: %s", map_id, outcome.reason)
        return JSONResponse(
            status_code=404,
            content=ErrorResponse(
                error="point_not_added",
                message=outcome.reason or "Point could not be added",
                request_id=request_id_var.get(""),
            ).model_dump(),
        )
    return outcome.value


@router.post(
    "/{point_id}",
    response_model=PointResponse,
    responses={404: {"description": "Point not found", "model": ErrorResponse}},
    summary="Edit a point",
)
async def edit_point(
    map_id: int,
    point_id: int,
    request: Request,
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> PointResponse:
    form = await request.form()
    changes = {key: value for key, value in form.items() if key != "map_id"}
    return await map_service.update_point(db, map_id, point_id, changes, user_id)


@router.post(
    "/{point_id}/delete",
    responses={404: {"description": "Point not found", "model": ErrorResponse}},
    summary="Delete a point",
)
async def delete_point(
    map_id: int,
    point_id: int,
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    await map_service.delete_point(db, map_id, point_id, user_id)
    return {"deleted": point_id, "map_id": map_id}
