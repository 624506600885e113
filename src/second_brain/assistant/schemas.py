"""
Pydantic schemas for assistant endpoints.
"""

from datetime import datetime

from second_brain.reminders.schemas import ReminderRecord
from second_brain.shared.schemas import CamelModel, SuccessResponse


class SendMessageRequest(CamelModel):
    content: str | None = None


class MessageRecord(CamelModel):
    id: int
    content: str
    source: str
    message_type: str
    direction: str
    created_at: datetime


class SendMessageResponse(SuccessResponse):
    reply: MessageRecord
    reminder: ReminderRecord | None = None


class MessageListResponse(SuccessResponse):
    messages: list[MessageRecord]
