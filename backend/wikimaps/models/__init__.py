"""
Imports every ORM model so the mapper registry (relationship targets given
by name) and Alembic's Base.metadata see the full schema.
"""
from wikimaps.models.user import User
from wikimaps.models.map import Map
from wikimaps.models.point import Point
from wikimaps.models.favourite import Favourite

__all__ = ["User", "Map", "Point", "Favourite"]
