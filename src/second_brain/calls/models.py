"""
SQLAlchemy model for voice calls.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from second_brain.shared.database import Base
from second_brain.telephony.interface import TERMINAL_CALL_STATUSES, CallStatus


class CallType(str, Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"


class Call(Base):
    """A voice call placed to or received from a user."""

    __tablename__ = "calls"
    __table_args__ = (Index("idx_calls_user_id", "user_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    provider_call_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    @property
    def is_terminal(self) -> bool:
        return CallStatus(self.status) in TERMINAL_CALL_STATUSES

    def __repr__(self) -> str:
        return f"<Call(id={self.id}, provider_call_id={self.provider_call_id}, status={self.status})>"
