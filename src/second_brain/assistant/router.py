"""
Assistant API endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from second_brain.assistant.gateway import LLMGateway
from second_brain.assistant.schemas import (
    MessageListResponse,
    MessageRecord,
    SendMessageRequest,
    SendMessageResponse,
)
from second_brain.assistant.service import AssistantService
from second_brain.auth.dependencies import CurrentUser
from second_brain.reminders.schemas import ReminderRecord
from second_brain.shared.dependencies import AppSettings, DbSession
from second_brain.shared.exceptions import ValidationError

router = APIRouter(prefix="/api/assistant", tags=["assistant"])


def get_llm_gateway(request: Request) -> LLMGateway:
    """Get the LLM gateway from app state."""
    return request.app.state.llm_gateway


def get_assistant_service(
    session: DbSession,
    settings: AppSettings,
    llm: Annotated[LLMGateway, Depends(get_llm_gateway)],
) -> AssistantService:
    return AssistantService(session=session, llm=llm, settings=settings)


AssistantServiceDep = Annotated[AssistantService, Depends(get_assistant_service)]


@router.post("/messages", response_model=SendMessageResponse)
async def send_message(
    body: SendMessageRequest,
    current_user: CurrentUser,
    service: AssistantServiceDep,
) -> SendMessageResponse:
    """Send a message to the assistant and get its reply.

    When the conversation calls for it, the assistant also schedules a
    reminder, returned alongside the reply.
    """
    if not body.content or not body.content.strip():
        raise ValidationError("Message content is required")

    outcome = await service.chat(current_user.user_id, body.content.strip())
    return SendMessageResponse(
        reply=MessageRecord.model_validate(outcome.reply),
        reminder=ReminderRecord.model_validate(outcome.reminder) if outcome.reminder else None,
    )


@router.get("/messages", response_model=MessageListResponse)
async def list_messages(
    current_user: CurrentUser,
    service: AssistantServiceDep,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> MessageListResponse:
    """The user's conversation, newest first."""
    messages = await service.recent_messages(current_user.user_id, limit)
    return MessageListResponse(messages=[MessageRecord.model_validate(m) for m in messages])
