"""
Pydantic schemas for reminder endpoints.
"""

from datetime import datetime

from pydantic import Field

from second_brain.reminders.models import ReminderStatus
from second_brain.shared.schemas import CamelModel, SuccessResponse


class ReminderRecord(CamelModel):
    id: int
    content: str
    scheduled_time: datetime
    status: ReminderStatus
    recurrence_pattern: str | None = None
    ai_generated: bool
    priority: int
    created_at: datetime
    updated_at: datetime


class CreateReminderRequest(CamelModel):
    content: str | None = None
    scheduled_time: datetime | None = None
    recurrence_pattern: str | None = Field(default=None, max_length=100)
    priority: int = 0


class UpdateReminderRequest(CamelModel):
    """Partial update; omitted fields keep their stored value."""

    content: str | None = None
    scheduled_time: datetime | None = None
    status: ReminderStatus | None = None
    recurrence_pattern: str | None = Field(default=None, max_length=100)
    priority: int | None = None


class ReminderResponse(SuccessResponse):
    reminder: ReminderRecord


class ReminderListResponse(SuccessResponse):
    reminders: list[ReminderRecord]
