"""
WikiMaps Backend: Favourite Service
===================================

What:  Add, remove and list a user's favourite maps.
Who:   Called by the profile and favourites routes.
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wikimaps.exceptions import NotFoundError, PersistenceError
from wikimaps.models import Favourite, Map
from wikimaps.schemas.user import FavouriteResponse

logger = logging.getLogger(__name__)


class FavouriteService:
    """Gateway for the users ↔ maps favourites association."""

    async def add_favourite(
        self, db: AsyncSession, user_id: str, map_id: int
    ) -> FavouriteResponse:
        """
        Bookmark `map_id` for `user_id`.

        Adding a map that is already a favourite returns the existing entry.

        Raises:
            NotFoundError:    No map with this id
            PersistenceError: Insert failed
        """
        try:
            found_map = await db.get(Map, map_id)
            if found_map is None:
                raise NotFoundError(resource="map", resource_id=str(map_id))

            existing = await db.scalar(
                select(Favourite).where(
                    Favourite.user_id == user_id, Favourite.map_id == map_id
                )
            )
            if existing is not None:
                return FavouriteResponse(
                    id=existing.id, map_id=map_id, title=found_map.title
                )

            favourite = Favourite(user_id=user_id, map_id=map_id)
            db.add(favourite)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error adding favourite %s/%s: %s", user_id, map_id, str(e))
            raise PersistenceError(
                message="Could not save the favourite. Please try again.",
                context={"user_id": user_id, "map_id": map_id},
            )

        logger.info("User %s favourited map %s", user_id, map_id)
        return FavouriteResponse(id=favourite.id, map_id=map_id, title=found_map.title)

    async def remove_favourite(
        self, db: AsyncSession, user_id: str, favourite_id: int
    ) -> None:
        """Delete one of `user_id`'s favourites; NotFoundError if it is not theirs."""
        try:
            favourite = await db.scalar(
                select(Favourite).where(
                    Favourite.id == favourite_id, Favourite.user_id == user_id
                )
            )
            if favourite is None:
                raise NotFoundError(resource="favourite", resource_id=str(favourite_id))

            await db.delete(favourite)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error removing favourite %s: %s", favourite_id, str(e))
            raise PersistenceError(
                message="Could not remove the favourite. Please try again.",
                context={"user_id": user_id, "favourite_id": favourite_id},
            )
        logger.info("User %s removed favourite %s", user_id, favourite_id)

    async def list_favourites(self, db: AsyncSession, user_id: str) -> List[FavouriteResponse]:
        try:
            result = await db.execute(
                select(Favourite.id, Favourite.map_id, Map.title)
                .join(Map, Map.id == Favourite.map_id)
                .where(Favourite.user_id == user_id)
                .order_by(Favourite.id)
            )
        except SQLAlchemyError as e:
            logger.error("Database error listing favourites for %s: %s", user_id, str(e))
            raise PersistenceError(context={"user_id": user_id})
        return [
            FavouriteResponse(id=row.id, map_id=row.map_id, title=row.title)
            for row in result.all()
        ]


favourite_service = FavouriteService()
