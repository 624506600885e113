"""
Repository for conversation messages.
"""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from second_brain.messages.models import (
    Message,
    MessageDirection,
    MessageSource,
    MessageType,
)


class MessageRepository:
    """Repository for message database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, message_id: int) -> Message | None:
        stmt = select(Message).where(Message.id == message_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_user(self, user_id: int, limit: int | None = None) -> Sequence[Message]:
        """Get a user's messages, newest first."""
        stmt = (
            select(Message)
            .where(Message.user_id == user_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def create(
        self,
        user_id: int,
        content: str,
        direction: MessageDirection,
        source: MessageSource = MessageSource.APP,
        message_type: MessageType = MessageType.TEXT,
    ) -> Message:
        message = Message(
            user_id=user_id,
            content=content,
            direction=direction.value,
            source=source.value,
            message_type=message_type.value,
        )
        self._session.add(message)
        await self._session.flush()
        await self._session.refresh(message)
        return message

    async def update(self, message_id: int, content: str | None = None) -> Message | None:
        message = await self.get_by_id(message_id)
        if message is None:
            return None
        if content is not None:
            message.content = content
        await self._session.flush()
        await self._session.refresh(message)
        return message

    async def delete(self, message_id: int) -> bool:
        message = await self.get_by_id(message_id)
        if message is None:
            return False
        await self._session.delete(message)
        await self._session.flush()
        return True
