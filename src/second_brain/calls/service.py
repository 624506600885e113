"""
Voice call orchestration between users, the telephony provider and storage.
"""

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from second_brain.calls.models import Call, CallType
from second_brain.calls.repository import CallRepository
from second_brain.config import Settings
from second_brain.shared.exceptions import UpstreamProviderError, ValidationError
from second_brain.shared.logging import get_logger
from second_brain.shared.phone import normalize_phone_number
from second_brain.telephony import twiml
from second_brain.telephony.config import TelephonyConfig
from second_brain.telephony.interface import (
    CallInitiationRequest,
    CallStatus,
    TelephonyProvider,
    TelephonyProviderError,
    WebhookParseError,
)
from second_brain.users.repository import UserRepository

logger = get_logger(__name__)

ANONYMOUS_STREAM = "anonymous"


def client_identity(user_id: int) -> str:
    return f"user-{user_id}"


class CallService:
    """Service for voice call operations."""

    def __init__(
        self,
        session: AsyncSession,
        telephony: TelephonyProvider,
        settings: Settings,
        telephony_config: TelephonyConfig,
        call_repository: CallRepository | None = None,
        user_repository: UserRepository | None = None,
    ) -> None:
        self._session = session
        self._telephony = telephony
        self._settings = settings
        self._telephony_config = telephony_config
        self._calls = call_repository or CallRepository(session)
        self._users = user_repository or UserRepository(session)

    def twiml_url(self, user_id: int) -> str:
        return f"{self._settings.public_base}/api/calls/twiml/{user_id}"

    @property
    def status_callback_url(self) -> str:
        return f"{self._settings.public_base}/api/calls/status"

    def _connect_document(self, stream_name: str) -> str:
        return twiml.connect_stream(
            media_stream_url=twiml.stream_url(self._telephony_config.media_stream_url, stream_name),
            voice=self._telephony_config.tts_voice,
        )

    def client_token(self, user_id: int) -> str:
        """Voice SDK token whose identity is ``user-<id>``."""
        try:
            return self._telephony.generate_client_token(client_identity(user_id))
        except TelephonyProviderError as e:
            logger.error(
                "Generating voice token failed",
                extra={"user_id": user_id, "error_code": e.error_code},
            )
            raise UpstreamProviderError(
                "Failed to generate token",
                details={"error_code": e.error_code},
            ) from e

    def twiml_for_user(self, user_id: int) -> str:
        return self._connect_document(str(user_id))

    async def handle_incoming(self, from_number: str, to_number: str, call_sid: str) -> str:
        """Answer an inbound call.

        The call is recorded when the caller's number belongs to a user;
        unknown callers are still connected to the anonymous stream.

        Returns:
            The TwiML document answering the call.
        """
        logger.info(
            "Incoming call",
            extra={"from": from_number, "to": to_number, "provider_call_id": call_sid},
        )

        user = None
        if from_number:
            phone = normalize_phone_number(from_number, self._settings.default_country_code)
            user = await self._users.get_by_phone_number(phone)

        if user is None:
            return self._connect_document(ANONYMOUS_STREAM)

        await self._calls.create(
            user_id=user.id,
            call_type=CallType.INCOMING,
            status=CallStatus.RINGING,
            provider_call_id=call_sid or None,
        )
        await self._session.commit()
        return self._connect_document(str(user.id))

    async def initiate_outgoing(self, user_id: int, phone_number: str) -> Call:
        """Call the given number; the answered call fetches the user's TwiML."""
        phone = normalize_phone_number(phone_number, self._settings.default_country_code)
        request = CallInitiationRequest(
            to=phone,
            from_number=self._telephony_config.twilio_phone_number,
            twiml_url=self.twiml_url(user_id),
            status_callback_url=self.status_callback_url,
        )

        try:
            response = await self._telephony.initiate_call(request)
        except TelephonyProviderError as e:
            logger.error(
                "Initiating outgoing call failed",
                extra={"user_id": user_id, "error_code": e.error_code},
            )
            raise UpstreamProviderError(
                "Failed to initiate call",
                details={"error_code": e.error_code},
            ) from e

        call = await self._calls.create(
            user_id=user_id,
            call_type=CallType.OUTGOING,
            status=response.status,
            provider_call_id=response.provider_call_id,
            started_at=response.created_at,
        )
        await self._session.commit()

        logger.info(
            "Outgoing call initiated",
            extra={"user_id": user_id, "call_id": call.id, "provider_call_id": call.provider_call_id},
        )
        return call

    async def history(self, user_id: int) -> Sequence[Call]:
        return await self._calls.list_by_user(user_id)

    async def apply_status_callback(self, payload: dict[str, Any]) -> Call | None:
        """Apply a provider status callback to the matching call.

        Unknown and finished calls are left alone, as are callbacks that would
        move a call back to an earlier status.

        Raises:
            ValidationError: The payload cannot be parsed.
        """
        try:
            event = self._telephony.parse_status_callback(payload)
        except WebhookParseError as e:
            logger.warning(
                "Unparsable status callback",
                extra={"error_code": e.error_code, "payload_keys": sorted(payload.keys())},
            )
            raise ValidationError("Invalid status callback", details={"error_code": e.error_code}) from e

        call = await self._calls.get_by_provider_call_id(event.provider_call_id)
        if call is None:
            logger.info(
                "Status callback for unknown call",
                extra={"provider_call_id": event.provider_call_id, "status": event.status.value},
            )
            return None

        if call.is_terminal:
            logger.info(
                "Status callback for finished call ignored",
                extra={"call_id": call.id, "status": call.status, "event_status": event.status.value},
            )
            return call

        # Callbacks are not ordered; a late "ringing" must not undo "in-progress".
        if event.status.rank < CallStatus(call.status).rank:
            logger.info(
                "Out-of-order status callback ignored",
                extra={"call_id": call.id, "status": call.status, "event_status": event.status.value},
            )
            return call

        ended_at = None
        if event.status.is_terminal:
            ended_at = event.timestamp or datetime.now(timezone.utc)

        updated = await self._calls.update(
            call.id,
            status=event.status,
            duration=event.duration_seconds,
            ended_at=ended_at,
        )
        await self._session.commit()

        logger.info(
            "Call status updated",
            extra={"call_id": call.id, "status": event.status.value},
        )
        return updated
