"""
Reminder management for the owning user.
"""

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from second_brain.reminders.models import Reminder, ReminderStatus
from second_brain.reminders.repository import ReminderRepository
from second_brain.shared.exceptions import ReminderNotFoundError
from second_brain.shared.logging import get_logger

logger = get_logger(__name__)


class ReminderService:
    """Service for reminder operations scoped to one user."""

    def __init__(
        self,
        session: AsyncSession,
        reminder_repository: ReminderRepository | None = None,
    ) -> None:
        self._session = session
        self._reminders = reminder_repository or ReminderRepository(session)

    async def list_for_user(self, user_id: int, status: ReminderStatus | None = None) -> Sequence[Reminder]:
        return await self._reminders.list_by_user(user_id, status=status)

    async def create(
        self,
        user_id: int,
        content: str,
        scheduled_time: datetime,
        recurrence_pattern: str | None = None,
        priority: int = 0,
    ) -> Reminder:
        reminder = await self._reminders.create(
            user_id=user_id,
            content=content,
            scheduled_time=scheduled_time,
            recurrence_pattern=recurrence_pattern,
            priority=priority,
        )
        await self._session.commit()
        logger.info("Reminder created", extra={"user_id": user_id, "reminder_id": reminder.id})
        return reminder

    async def _owned(self, user_id: int, reminder_id: int) -> Reminder:
        # Another user's reminder is reported as missing.
        reminder = await self._reminders.get_for_user(reminder_id, user_id)
        if reminder is None:
            raise ReminderNotFoundError(reminder_id)
        return reminder

    async def update(
        self,
        user_id: int,
        reminder_id: int,
        content: str | None = None,
        scheduled_time: datetime | None = None,
        status: ReminderStatus | None = None,
        recurrence_pattern: str | None = None,
        priority: int | None = None,
    ) -> Reminder:
        """Partially update a reminder; None fields are left unchanged.

        Raises:
            ReminderNotFoundError: Unknown reminder or owned by someone else.
        """
        await self._owned(user_id, reminder_id)
        reminder = await self._reminders.update(
            reminder_id,
            content=content,
            scheduled_time=scheduled_time,
            status=status,
            recurrence_pattern=recurrence_pattern,
            priority=priority,
        )
        if reminder is None:
            raise ReminderNotFoundError(reminder_id)
        await self._session.commit()
        return reminder

    async def delete(self, user_id: int, reminder_id: int) -> None:
        await self._owned(user_id, reminder_id)
        await self._reminders.delete(reminder_id)
        await self._session.commit()
        logger.info("Reminder deleted", extra={"user_id": user_id, "reminder_id": reminder_id})
