"""
WikiMaps Backend: Favourite SQLAlchemy Model
============================================

What:  Association between a user identifier and a map they bookmarked.
Who:   FavouriteService (add, remove, list for the profile view).

A user can favourite a given map once: UNIQUE (user_id, map_id).
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wikimaps.database import Base

if TYPE_CHECKING:
    from wikimaps.models.map import Map


class Favourite(Base):
    __tablename__ = "favourites"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    map_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("maps.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    map: Mapped["Map"] = relationship(back_populates="favourites")

    __table_args__ = (
        UniqueConstraint("user_id", "map_id", name="uq_favourites_user_map"),
    )

    def __repr__(self) -> str:
        return f"<Favourite(id={self.id}, user_id='{self.user_id}', map_id={self.map_id})>"
