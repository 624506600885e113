"""
Assistant service: replies, AI-suggested reminders and fact extraction.
"""

import json
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from second_brain.assistant.gateway import LLMGateway
from second_brain.assistant.models import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    LLMError,
)
from second_brain.assistant.prompts import (
    ASSISTANT_SYSTEM_PROMPT,
    EXTRACTION_SYSTEM_PROMPT,
    FALLBACK_REPLY,
    build_reminder_prompt,
)
from second_brain.config import Settings
from second_brain.messages.models import Message, MessageDirection
from second_brain.messages.repository import MessageRepository
from second_brain.reminders.models import Reminder
from second_brain.reminders.repository import ReminderRepository
from second_brain.shared.exceptions import UpstreamProviderError
from second_brain.shared.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReminderDraft:
    """A reminder the model suggested from the conversation."""

    content: str
    scheduled_time: datetime


@dataclass(frozen=True)
class ChatOutcome:
    inbound: Message
    reply: Message
    reminder: Reminder | None = None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_json_object(content: str | None) -> dict[str, Any] | None:
    if not content:
        return None
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        logger.warning("Model returned invalid JSON", extra={"length": len(content)})
        return None
    return data if isinstance(data, dict) else None


class AssistantService:
    """Service for assistant conversations."""

    def __init__(
        self,
        session: AsyncSession,
        llm: LLMGateway,
        settings: Settings,
        message_repository: MessageRepository | None = None,
        reminder_repository: ReminderRepository | None = None,
    ) -> None:
        """Initialize assistant service.

        Args:
            session: Database session; ``chat`` commits.
            llm: Chat-completion gateway.
            settings: Application settings (context window size).
            message_repository: Message repository.
            reminder_repository: Reminder repository.
        """
        self._session = session
        self._llm = llm
        self._settings = settings
        self._messages = message_repository or MessageRepository(session)
        self._reminders = reminder_repository or ReminderRepository(session)

    async def _complete(self, request: ChatRequest) -> ChatResponse:
        try:
            return await self._llm.chat_completion(request)
        except LLMError as e:
            logger.error(
                "LLM request failed",
                extra={
                    "error_type": type(e).__name__,
                    "correlation_id": e.correlation_id,
                    "retryable": e.retryable,
                },
            )
            raise UpstreamProviderError(
                "Failed to generate response",
                details={"error_type": type(e).__name__},
            ) from e

    async def generate_response(
        self,
        message: str,
        context: Sequence[ChatMessage] = (),
    ) -> str:
        """Reply to ``message`` given the earlier conversation."""
        request = ChatRequest(
            messages=[
                ChatMessage.system(ASSISTANT_SYSTEM_PROMPT),
                *context,
                ChatMessage.user(message),
            ],
            max_tokens=500,
            temperature=0.7,
        )
        response = await self._complete(request)
        return response.content or FALLBACK_REPLY

    async def generate_reminder(self, history: Sequence[str]) -> ReminderDraft | None:
        """Ask the model whether the conversation calls for a reminder.

        Invalid JSON, missing fields and provider failures all yield None.
        """
        if not history:
            return None

        request = ChatRequest(
            messages=[
                ChatMessage.system(build_reminder_prompt(datetime.now(timezone.utc))),
                *(ChatMessage.user(text) for text in history),
            ],
            max_tokens=250,
            temperature=0.2,
            response_format="json_object",
        )
        try:
            response = await self._complete(request)
        except UpstreamProviderError:
            return None

        data = _parse_json_object(response.content)
        if not data:
            return None

        content = data.get("content")
        scheduled_time = parse_timestamp(data.get("scheduledTime"))
        if not isinstance(content, str) or not content.strip() or scheduled_time is None:
            return None
        return ReminderDraft(content=content.strip(), scheduled_time=scheduled_time)

    async def extract_information(self, history: Sequence[str]) -> dict[str, Any]:
        """Extract facts worth remembering, grouped by category.

        Invalid JSON and provider failures yield an empty dict.
        """
        if not history:
            return {}

        request = ChatRequest(
            messages=[
                ChatMessage.system(EXTRACTION_SYSTEM_PROMPT),
                *(ChatMessage.user(text) for text in history),
            ],
            max_tokens=500,
            temperature=0.3,
            response_format="json_object",
        )
        try:
            response = await self._complete(request)
        except UpstreamProviderError:
            return {}
        return _parse_json_object(response.content) or {}

    async def recent_messages(self, user_id: int, limit: int) -> Sequence[Message]:
        """The user's latest messages, newest first."""
        return await self._messages.list_by_user(user_id, limit=limit)

    async def chat(self, user_id: int, content: str) -> ChatOutcome:
        """Store the user's message, reply to it and store any suggested reminder.

        The inbound message is committed before the model is called, so it
        survives a provider failure.
        """
        window = self._settings.assistant_context_messages
        earlier = list(reversed(await self._messages.list_by_user(user_id, limit=window))) if window else []
        context = [
            ChatMessage.user(m.content)
            if m.direction == MessageDirection.INBOUND.value
            else ChatMessage.assistant(m.content)
            for m in earlier
        ]

        inbound = await self._messages.create(user_id, content, MessageDirection.INBOUND)
        await self._session.commit()

        reply_text = await self.generate_response(content, context)
        reply = await self._messages.create(user_id, reply_text, MessageDirection.OUTBOUND)

        user_history = [
            m.content for m in earlier if m.direction == MessageDirection.INBOUND.value
        ]
        draft = await self.generate_reminder([*user_history, content])
        reminder = None
        if draft is not None:
            reminder = await self._reminders.create(
                user_id=user_id,
                content=draft.content,
                scheduled_time=draft.scheduled_time,
                ai_generated=True,
            )
            logger.info(
                "AI reminder created",
                extra={"user_id": user_id, "reminder_id": reminder.id},
            )

        await self._session.commit()
        return ChatOutcome(inbound=inbound, reply=reply, reminder=reminder)
