"""
WikiMaps Backend: User Service
==============================

What:  Read-only access to the `users` table for the /api/users sub-router
       and the profile page.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wikimaps.exceptions import PersistenceError
from wikimaps.models import User
from wikimaps.schemas.user import UserProfile

logger = logging.getLogger(__name__)


class UserService:

    async def get_user(self, db: AsyncSession, user_id: str) -> Optional[UserProfile]:
        """Return the stored profile, or None when the identifier has no row."""
        try:
            user = await db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e))
            raise PersistenceError(context={"user_id": user_id})
        if user is None:
            return None
        return UserProfile.model_validate(user)

    async def list_users(self, db: AsyncSession) -> List[UserProfile]:
        try:
            result = await db.execute(select(User).order_by(User.id))
        except SQLAlchemyError as e:
            logger.error("Database error listing users: %s", str(e), exc_info=True)
            raise PersistenceError(context={"error_type": type(e).__name__})
        return [UserProfile.model_validate(user) for user in result.scalars().all()]


user_service = UserService()
