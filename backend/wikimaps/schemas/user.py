"""
WikiMaps Backend: User and Favourite Schemas
============================================

What:  Output models for the /api/users sub-router, the profile view and
       favourites.
"""

from typing import Optional

from pydantic import BaseModel, Field


class UserProfile(BaseModel):
    id: str
    username: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    picture: Optional[str] = None

    model_config = {"from_attributes": True}

    @classmethod
    def placeholder(cls, user_id: str) -> "UserProfile":
        """Profile shown for identifiers that have no users row yet."""
        return cls(id=user_id, username=user_id)


class FavouriteResponse(BaseModel):
    """A favourite as listed on the profile page."""

    id: int = Field(description="Favourite identifier, used by the remove route")
    map_id: int
    title: str = Field(description="Title of the favourited map")
