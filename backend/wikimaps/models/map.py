"""
WikiMaps Backend: Map SQLAlchemy Model
======================================

What:  ORM model representing the `maps` table.
Who:   Written and read by MapService; referenced by points and favourites.

Table Design:
    - Integer primary key assigned by the store and returned by create_map
    - user_id: owning user identifier, taken from the session at creation
    - Deleting a map deletes its points and favourites (ON DELETE CASCADE
      in the schema, delete-orphan cascade on the ORM relationships)

Query Patterns:
    - Map listing: SELECT id, title FROM maps ORDER BY created_at DESC, id DESC
    - Single map: SELECT ... WHERE id = :id (primary key lookup)
"""

from datetime import datetime, timezone
from typing import List, TYPE_CHECKING

from sqlalchemy import DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wikimaps.database import Base

if TYPE_CHECKING:
    from wikimaps.models.favourite import Favourite
    from wikimaps.models.point import Point


class Map(Base):
    """
    A user-created, named collection of geographic points.

    Lifecycle:
        1. Created from the new-map form (owner = session identity)
        2. Points are added and edited by any logged-in user
        3. Deleted by its owner; points and favourites go with it
    """

    __tablename__ = "maps"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Map title shown in listings",
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        server_default=text("''"),
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Identifier of the user who created the map",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    points: Mapped[List["Point"]] = relationship(
        back_populates="map",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    favourites: Mapped[List["Favourite"]] = relationship(
        back_populates="map",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_maps_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Map(id={self.id}, title='{self.title}', user_id='{self.user_id}')>"
