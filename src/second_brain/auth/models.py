"""
SQLAlchemy model for per-user authentication state.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from second_brain.shared.database import Base


class AuthRecord(Base):
    """Latest in-flight verification and latest refresh token of a user.

    One row per user, maintained by upsert; every new verification attempt
    or successful login overwrites the previous value (last write wins).
    """

    __tablename__ = "auth"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    verification_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    refresh_token: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<AuthRecord(id={self.id}, user_id={self.user_id})>"
