"""
WikiMaps Backend: User SQLAlchemy Model
=======================================

What:  ORM model for the `users` table.
Who:   Read by UserService for the /api/users sub-router and the profile view.

The primary key is the same opaque string the session cookie carries, so a
user row can be looked up directly from the resolved identity. Maps, points
and favourites do not reference this table: the development login accepts
any identifier, including ones with no row here.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, text
from sqlalchemy.orm import Mapped, mapped_column

from wikimaps.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment="Opaque user identifier, identical to the session user_id",
    )
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    picture: Mapped[Optional[str]] = mapped_column(
        String(2048),
        nullable=True,
        comment="Profile picture reference (URL or static path)",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id='{self.id}', username='{self.username}')>"
