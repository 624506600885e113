"""
Reminder API endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from second_brain.auth.dependencies import CurrentUser
from second_brain.reminders.models import ReminderStatus
from second_brain.reminders.schemas import (
    CreateReminderRequest,
    ReminderListResponse,
    ReminderRecord,
    ReminderResponse,
    UpdateReminderRequest,
)
from second_brain.reminders.service import ReminderService
from second_brain.shared.dependencies import DbSession
from second_brain.shared.exceptions import ValidationError
from second_brain.shared.schemas import SuccessResponse

router = APIRouter(prefix="/api/reminders", tags=["reminders"])


def get_reminder_service(session: DbSession) -> ReminderService:
    return ReminderService(session)


ReminderServiceDep = Annotated[ReminderService, Depends(get_reminder_service)]


@router.get("", response_model=ReminderListResponse)
async def list_reminders(
    current_user: CurrentUser,
    service: ReminderServiceDep,
    status_filter: Annotated[ReminderStatus | None, Query(alias="status")] = None,
) -> ReminderListResponse:
    """List the user's reminders, newest first."""
    reminders = await service.list_for_user(current_user.user_id, status=status_filter)
    return ReminderListResponse(reminders=[ReminderRecord.model_validate(r) for r in reminders])


@router.post("", response_model=ReminderResponse, status_code=status.HTTP_201_CREATED)
async def create_reminder(
    body: CreateReminderRequest,
    current_user: CurrentUser,
    service: ReminderServiceDep,
) -> ReminderResponse:
    if not body.content or not body.content.strip():
        raise ValidationError("Content is required")
    if body.scheduled_time is None:
        raise ValidationError("Scheduled time is required")

    reminder = await service.create(
        current_user.user_id,
        content=body.content.strip(),
        scheduled_time=body.scheduled_time,
        recurrence_pattern=body.recurrence_pattern,
        priority=body.priority,
    )
    return ReminderResponse(reminder=ReminderRecord.model_validate(reminder))


@router.patch("/{reminder_id}", response_model=ReminderResponse)
async def update_reminder(
    reminder_id: int,
    body: UpdateReminderRequest,
    current_user: CurrentUser,
    service: ReminderServiceDep,
) -> ReminderResponse:
    reminder = await service.update(
        current_user.user_id,
        reminder_id,
        content=body.content,
        scheduled_time=body.scheduled_time,
        status=body.status,
        recurrence_pattern=body.recurrence_pattern,
        priority=body.priority,
    )
    return ReminderResponse(reminder=ReminderRecord.model_validate(reminder))


@router.delete("/{reminder_id}", response_model=SuccessResponse)
async def delete_reminder(
    reminder_id: int,
    current_user: CurrentUser,
    service: ReminderServiceDep,
) -> SuccessResponse:
    await service.delete(current_user.user_id, reminder_id)
    return SuccessResponse()
