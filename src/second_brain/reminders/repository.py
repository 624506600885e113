"""
Repository for reminder database operations.
"""

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from second_brain.reminders.models import Reminder, ReminderStatus


class ReminderRepository:
    """Repository for reminder database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async database session.
        """
        self._session = session

    async def get_by_id(self, reminder_id: int) -> Reminder | None:
        stmt = select(Reminder).where(Reminder.id == reminder_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_for_user(self, reminder_id: int, user_id: int) -> Reminder | None:
        """Get a reminder only if it belongs to the given user."""
        stmt = select(Reminder).where(
            Reminder.id == reminder_id,
            Reminder.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_user(
        self,
        user_id: int,
        status: ReminderStatus | None = None,
    ) -> Sequence[Reminder]:
        """Get a user's reminders, newest first, optionally filtered by status."""
        stmt = select(Reminder).where(Reminder.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Reminder.status == status.value)
        stmt = stmt.order_by(Reminder.created_at.desc(), Reminder.id.desc())
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def create(
        self,
        user_id: int,
        content: str,
        scheduled_time: datetime,
        recurrence_pattern: str | None = None,
        ai_generated: bool = False,
        priority: int = 0,
    ) -> Reminder:
        """Create a pending reminder.

        Args:
            user_id: Owner of the reminder.
            content: What to remind about.
            scheduled_time: When the reminder is due.
            recurrence_pattern: Free-form recurrence description.
            ai_generated: Whether the assistant suggested it.
            priority: Higher is more important.

        Returns:
            Created Reminder instance.
        """
        reminder = Reminder(
            user_id=user_id,
            content=content,
            scheduled_time=scheduled_time,
            status=ReminderStatus.PENDING.value,
            recurrence_pattern=recurrence_pattern,
            ai_generated=ai_generated,
            priority=priority,
        )
        self._session.add(reminder)
        await self._session.flush()
        await self._session.refresh(reminder)
        return reminder

    async def update(
        self,
        reminder_id: int,
        content: str | None = None,
        scheduled_time: datetime | None = None,
        status: ReminderStatus | None = None,
        recurrence_pattern: str | None = None,
        priority: int | None = None,
    ) -> Reminder | None:
        """Update reminder fields; None arguments keep the stored value."""
        reminder = await self.get_by_id(reminder_id)
        if reminder is None:
            return None

        if content is not None:
            reminder.content = content
        if scheduled_time is not None:
            reminder.scheduled_time = scheduled_time
        if status is not None:
            reminder.status = status.value
        if recurrence_pattern is not None:
            reminder.recurrence_pattern = recurrence_pattern
        if priority is not None:
            reminder.priority = priority

        await self._session.flush()
        await self._session.refresh(reminder)
        return reminder

    async def delete(self, reminder_id: int) -> bool:
        reminder = await self.get_by_id(reminder_id)
        if reminder is None:
            return False
        await self._session.delete(reminder)
        await self._session.flush()
        return True
