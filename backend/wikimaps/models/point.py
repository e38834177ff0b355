"""
WikiMaps Backend: Point SQLAlchemy Model
========================================

What:  ORM model representing the `points` table.
Who:   Written and read by MapService (add, update, delete, list by map).

Invariant: every point references an existing map (points.map_id → maps.id,
NOT NULL, ON DELETE CASCADE). Coordinates are DOUBLE PRECISION so a value
written by add_point comes back bit-for-bit from get_points_by_map_id.
"""

from datetime import datetime, timezone
from typing import Optional, TYPE_CHECKING

from sqlalchemy import DateTime, Double, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wikimaps.database import Base

if TYPE_CHECKING:
    from wikimaps.models.map import Map


class Point(Base):
    """A single geotagged annotation belonging to exactly one map."""

    __tablename__ = "points"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        server_default=text("''"),
    )

    # Image reference only (URL or static path); files are not stored here
    image: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)

    map_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("maps.id", ondelete="CASCADE"),
        nullable=False,
    )

    latitude: Mapped[float] = mapped_column(Double, nullable=False)
    longitude: Mapped[float] = mapped_column(Double, nullable=False)

    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Identifier of the user who added the point",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    map: Mapped["Map"] = relationship(back_populates="points")

    __table_args__ = (
        Index("idx_points_map_id", "map_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Point(id={self.id}, map_id={self.map_id}, "
            f"lat={self.latitude}, long={self.longitude})>"
        )
