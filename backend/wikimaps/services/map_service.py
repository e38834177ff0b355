"""
WikiMaps Backend: Map Service (Persistence Gateway)
===================================================

What:  Async operations translating map and point calls into SQL against the
       relational store.
How:   Each method receives the request's AsyncSession, builds queries with
       SQLAlchemy `select`/ORM units of work, and commits its own write.
Who:   Called by the maps and points route handlers.

Operation contract:
    create_map            → map id                  | ValidationError, PersistenceError
    get_map_names         → [MapSummary] (maybe [])  | PersistenceError
    get_map               → MapDetail               | NotFoundError, PersistenceError
    delete_map            → None                    | NotFoundError, PermissionDeniedError, PersistenceError
    get_points_by_map_id  → PointLookup (tri-state)  | PersistenceError
    add_point             → Outcome[PointResponse]   (never raises for bad input or store errors)
    update_point          → PointResponse           | ValidationError, NotFoundError, PermissionDeniedError, PersistenceError
    delete_point          → None                    | NotFoundError, PermissionDeniedError, PersistenceError

No operation groups several entities in one transaction: creating a map and
adding its first point are two independent commits.
"""

import logging
from typing import Any, List, Mapping

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wikimaps.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ValidationError,
)
from wikimaps.models import Map, Point
from wikimaps.schemas.map import (
    MapCreate,
    MapDetail,
    MapSummary,
    PointCreate,
    PointResponse,
    PointUpdate,
)
from wikimaps.schemas.results import Outcome, PointLookup

logger = logging.getLogger(__name__)


def describe_validation_error(exc: PydanticValidationError) -> str:
    """Flatten pydantic errors into 'field: message; field: message'."""
    parts = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ())) or "body"
        parts.append(f"{location}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)


def _first_field(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    if errors and errors[0].get("loc"):
        return str(errors[0]["loc"][0])
    return "body"


class MapService:
    """
    Gateway for maps and their points.

    Stateless: everything it touches comes from the session passed in, so
    one module-level instance serves every request.
    """

    # ── Maps ──────────────────────────────────────────────────────────────

    async def create_map(self, db: AsyncSession, fields: Mapping[str, Any]) -> int:
        """
        Insert a map row and return the identifier assigned by the store.

        Args:
            db:     Async database session
            fields: title, description and the owning user_id

        Raises:
            ValidationError:  Title or user_id missing/blank
            PersistenceError: Constraint violation or connectivity loss
        """
        try:
            data = MapCreate.model_validate(dict(fields))
        except PydanticValidationError as e:
            raise ValidationError(
                message=f"Invalid map: {describe_validation_error(e)}",
                field=_first_field(e),
            )

        new_map = Map(title=data.title, description=data.description, user_id=data.user_id)
        try:
            db.add(new_map)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error creating map for %s: %s", data.user_id, str(e))
            raise PersistenceError(
                message="Could not create the map. Please try again.",
                context={"user_id": data.user_id, "error_type": type(e).__name__},
            )

        logger.info("Map %s created by user %s", new_map.id, data.user_id)
        return new_map.id

    async def get_map_names(self, db: AsyncSession) -> List[MapSummary]:
        """
        List every map as (id, title), newest first.

        Returns an empty list when no maps exist.
        """
        try:
            result = await db.execute(
                select(Map.id, Map.title).order_by(Map.created_at.desc(), Map.id.desc())
            )
        except SQLAlchemyError as e:
            logger.error("Database error listing maps: %s", str(e), exc_info=True)
            raise PersistenceError(
                message="Could not retrieve maps. Please try again.",
                context={"error_type": type(e).__name__},
            )
        return [MapSummary(id=row.id, title=row.title) for row in result.all()]

    async def get_map(self, db: AsyncSession, map_id: int) -> MapDetail:
        """
        Fetch a single map.

        Raises:
            NotFoundError:    No map with this id (→ 404)
            PersistenceError: Query execution failed (→ 500)
        """
        try:
            result = await db.execute(select(Map).where(Map.id == map_id))
            found = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching map %s: %s", map_id, str(e))
            raise PersistenceError(
                message="Could not retrieve the map. Please try again.",
                context={"map_id": map_id},
            )

        if found is None:
            raise NotFoundError(resource="map", resource_id=str(map_id))
        return MapDetail.model_validate(found)

    async def delete_map(self, db: AsyncSession, map_id: int, user_id: str) -> None:
        """
        Delete a map owned by `user_id`; its points and favourites cascade.

        Raises:
            NotFoundError:         No map with this id
            PermissionDeniedError: Map belongs to another user
            PersistenceError:      Delete failed
        """
        try:
            found = await db.get(Map, map_id)
        except SQLAlchemyError as e:
            logger.error("Database error loading map %s for delete: %s", map_id, str(e))
            raise PersistenceError(context={"map_id": map_id})

        if found is None:
            raise NotFoundError(resource="map", resource_id=str(map_id))
        if found.user_id != user_id:
            raise PermissionDeniedError(
                message="Only the map's creator can delete it.",
                context={"map_id": map_id, "owner": found.user_id, "user_id": user_id},
            )

        try:
            await db.delete(found)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error deleting map %s: %s", map_id, str(e))
            raise PersistenceError(
                message="Could not delete the map. Please try again.",
                context={"map_id": map_id, "error_type": type(e).__name__},
            )
        logger.info("Map %s deleted by user %s", map_id, user_id)

    # ── Points ────────────────────────────────────────────────────────────

    async def get_points_by_map_id(self, db: AsyncSession, map_id: int) -> PointLookup:
        """
        Points of one map, ordered by insertion.

        Returns:
            PointLookup FOUND / EMPTY when the map exists, NOT_FOUND otherwise.

        Raises:
            PersistenceError: Query execution failed
        """
        try:
            map_exists = await db.scalar(select(Map.id).where(Map.id == map_id))
            if map_exists is None:
                return PointLookup.not_found()

            result = await db.execute(
                select(Point).where(Point.map_id == map_id).order_by(Point.id)
            )
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error fetching points for map %s: %s", map_id, str(e))
            raise PersistenceError(
                message="Could not retrieve points. Please try again.",
                context={"map_id": map_id, "error_type": type(e).__name__},
            )

        return PointLookup.of([PointResponse.model_validate(row) for row in rows])

    async def add_point(
        self, db: AsyncSession, fields: Mapping[str, Any]
    ) -> Outcome[PointResponse]:
        """
        Insert a point.

        Every failure (invalid fields, unknown map, store error) is reported
        as `Outcome.failure(reason)`; nothing is left half-written because
        the session is rolled back before returning.
        """
        try:
            data = PointCreate.model_validate(dict(fields))
        except PydanticValidationError as e:
            reason = describe_validation_error(e)
            logger.warning("Rejected point: %s", reason)
            return Outcome.failure(reason)

        try:
            map_exists = await db.scalar(select(Map.id).where(Map.id == data.map_id))
            if map_exists is None:
                logger.warning("Rejected point for unknown map %s", data.map_id)
                return Outcome.failure(f"map {data.map_id} does not exist")

            point = Point(**data.model_dump())
            db.add(point)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error inserting point on map %s: %s", data.map_id, str(e))
            return Outcome.failure(f"could not insert point ({type(e).__name__})")

        logger.info("Point %s added to map %s by %s", point.id, point.map_id, point.user_id)
        return Outcome.success(PointResponse.model_validate(point))

    async def _load_point(
        self, db: AsyncSession, map_id: int, point_id: int, user_id: str
    ) -> Point:
        """
        Load a point on `map_id` that `user_id` may change.

        The point's author and the map's owner may edit or delete it.

        Raises:
            NotFoundError:         No such point on this map
            PermissionDeniedError: Anyone else
            PersistenceError:      Query failed
        """
        try:
            result = await db.execute(
                select(Point, Map.user_id)
                .join(Map, Map.id == Point.map_id)
                .where(Point.id == point_id, Point.map_id == map_id)
            )
            row = result.one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching point %s: %s", point_id, str(e))
            raise PersistenceError(context={"map_id": map_id, "point_id": point_id})

        if row is None:
            raise NotFoundError(resource="point", resource_id=str(point_id))
        point, map_owner = row
        if user_id not in (point.user_id, map_owner):
            raise PermissionDeniedError(
                message="Only the point's author or the map's owner can change it.",
                context={"point_id": point_id, "author": point.user_id, "user_id": user_id},
            )
        return point

    async def update_point(
        self,
        db: AsyncSession,
        map_id: int,
        point_id: int,
        fields: Mapping[str, Any],
        user_id: str,
    ) -> PointResponse:
        """Apply a partial update to a point on `map_id`."""
        try:
            changes = PointUpdate.model_validate(dict(fields)).model_dump(exclude_unset=True)
        except PydanticValidationError as e:
            raise ValidationError(
                message=f"Invalid point: {describe_validation_error(e)}",
                field=_first_field(e),
            )

        point = await self._load_point(db, map_id, point_id, user_id)
        for name, value in changes.items():
            setattr(point, name, value)

        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error updating point %s: %s", point_id, str(e))
            raise PersistenceError(
                message="Could not update the point. Please try again.",
                context={"point_id": point_id, "error_type": type(e).__name__},
            )
        return PointResponse.model_validate(point)

    async def delete_point(
        self, db: AsyncSession, map_id: int, point_id: int, user_id: str
    ) -> None:
        """Remove a point from `map_id`."""
        point = await self._load_point(db, map_id, point_id, user_id)
        try:
            await db.delete(point)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error deleting point %s: %s", point_id, str(e))
            raise PersistenceError(
                message="Could not delete the point. Please try again.",
                context={"point_id": point_id, "error_type": type(e).__name__},
            )
        logger.info("Point %s deleted from map %s", point_id, map_id)


# ── Singleton Instance ────────────────────────────────────────────────────
map_service = MapService()
