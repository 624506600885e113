"""
SQLAlchemy model for conversation messages.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from second_brain.shared.database import Base


class MessageSource(str, Enum):
    APP = "app"
    SMS = "sms"
    CALL = "call"


class MessageType(str, Enum):
    TEXT = "text"
    TRANSCRIPT = "transcript"


class MessageDirection(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class Message(Base):
    """A message exchanged between a user and the assistant."""

    __tablename__ = "messages"
    __table_args__ = (Index("idx_messages_user_id", "user_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str] = mapped_column(String(20), nullable=False)
    message_type: Mapped[str] = mapped_column(String(20), nullable=False)
    direction: Mapped[str] = mapped_column(String(10), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, user_id={self.user_id}, direction={self.direction})>"
