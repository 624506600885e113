"""
Tests for the call service.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from second_brain.calls.models import CallType
from second_brain.calls.repository import CallRepository
from second_brain.calls.service import CallService
from second_brain.config import Settings
from second_brain.shared.exceptions import UpstreamProviderError, ValidationError
from second_brain.telephony.config import ProviderType, TelephonyConfig
from second_brain.telephony.interface import CallStatus
from second_brain.telephony.mock_adapter import MockTelephonyProvider
from second_brain.telephony.twilio_adapter import TwilioAdapter
from second_brain.users.models import User


@pytest.fixture
def service(
    db_session: AsyncSession,
    telephony: MockTelephonyProvider,
    test_settings: Settings,
    telephony_config: TelephonyConfig,
) -> CallService:
    return CallService(
        session=db_session,
        telephony=telephony,
        settings=test_settings,
        telephony_config=telephony_config,
    )


class TestUrls:
    def test_twiml_and_callback_urls(self, service: CallService) -> None:
        assert service.twiml_url(7) == "https://api.example.com/api/calls/twiml/7"
        assert service.status_callback_url == "https://api.example.com/api/calls/status"

    def test_client_token_identity(self, service: CallService) -> None:
        assert service.client_token(7) == "mock-voice-token-user-7"


class TestIncoming:
    @pytest.mark.asyncio
    async def test_known_caller_is_recorded(
        self,
        service: CallService,
        db_session: AsyncSession,
        test_user: User,
    ) -> None:
        document = await service.handle_incoming("(555) 123-4567", "+15550000000", "CA_IN_1")

        assert f'<Stream url="wss://media.example.com/stream/{test_user.id}" />' in document
        call = await CallRepository(db_session).get_by_provider_call_id("CA_IN_1")
        assert call is not None
        assert call.user_id == test_user.id
        assert call.type == CallType.INCOMING.value
        assert call.status == CallStatus.RINGING.value

    @pytest.mark.asyncio
    async def test_unknown_caller_gets_anonymous_stream(
        self,
        service: CallService,
        db_session: AsyncSession,
    ) -> None:
        document = await service.handle_incoming("+19998887777", "+15550000000", "CA_IN_2")

        assert "wss://media.example.com/stream/anonymous" in document
        assert await CallRepository(db_session).get_by_provider_call_id("CA_IN_2") is None


class TestOutgoing:
    @pytest.mark.asyncio
    async def test_initiate_records_call(
        self,
        service: CallService,
        telephony: MockTelephonyProvider,
        test_user: User,
    ) -> None:
        call = await service.initiate_outgoing(test_user.id, "555-222-3333")

        assert call.provider_call_id.startswith("CA_MOCK_")
        assert call.status == CallStatus.QUEUED.value
        assert call.type == CallType.OUTGOING.value
        assert call.started_at is not None

        sent = telephony.get_last_call()
        assert sent.to == "+15552223333"
        assert sent.from_number == "+15550000000"
        assert sent.twiml_url == f"https://api.example.com/api/calls/twiml/{test_user.id}"
        assert sent.status_callback_url == "https://api.example.com/api/calls/status"

    @pytest.mark.asyncio
    async def test_provider_failure(
        self,
        service: CallService,
        telephony: MockTelephonyProvider,
        db_session: AsyncSession,
        test_user: User,
    ) -> None:
        telephony.configure_failure()

        with pytest.raises(UpstreamProviderError) as exc_info:
            await service.initiate_outgoing(test_user.id, "+15552223333")

        assert exc_info.value.message == "Failed to initiate call"
        assert await CallRepository(db_session).list_by_user(test_user.id) == []


class TestStatusCallback:
    @pytest.mark.asyncio
    async def test_completed_updates_duration_and_end(
        self,
        service: CallService,
        test_user: User,
    ) -> None:
        call = await service.initiate_outgoing(test_user.id, "+15552223333")

        updated = await service.apply_status_callback(
            {"CallSid": call.provider_call_id, "CallStatus": "completed", "CallDuration": "65"}
        )

        assert updated is not None
        assert updated.status == "completed"
        assert updated.duration == 65
        assert updated.ended_at is not None

    @pytest.mark.asyncio
    async def test_in_progress_has_no_end(self, service: CallService, test_user: User) -> None:
        call = await service.initiate_outgoing(test_user.id, "+15552223333")

        updated = await service.apply_status_callback(
            {"CallSid": call.provider_call_id, "CallStatus": "in-progress"}
        )

        assert updated.status == "in_progress"
        assert updated.ended_at is None

    @pytest.mark.asyncio
    async def test_terminal_status_is_final(self, service: CallService, test_user: User) -> None:
        call = await service.initiate_outgoing(test_user.id, "+15552223333")
        await service.apply_status_callback({"CallSid": call.provider_call_id, "CallStatus": "busy"})

        late = await service.apply_status_callback(
            {"CallSid": call.provider_call_id, "CallStatus": "ringing"}
        )

        assert late.status == "busy"

    @pytest.mark.asyncio
    async def test_late_earlier_status_is_ignored(self, service: CallService, test_user: User) -> None:
        call = await service.initiate_outgoing(test_user.id, "+15552223333")
        await service.apply_status_callback({"CallSid": call.provider_call_id, "CallStatus": "in-progress"})

        late = await service.apply_status_callback(
            {"CallSid": call.provider_call_id, "CallStatus": "ringing"}
        )

        assert late.status == "in_progress"
        assert late.ended_at is None

    @pytest.mark.asyncio
    async def test_provider_timestamp_becomes_end_time(
        self,
        db_session: AsyncSession,
        test_settings: Settings,
        telephony_config: TelephonyConfig,
        test_user: User,
    ) -> None:
        twilio = TwilioAdapter(
            config=TelephonyConfig(
                _env_file=None,
                provider_type=ProviderType.TWILIO,
                twilio_account_sid="AC_TEST",
                twilio_auth_token="token",
            ),
            http_client=MagicMock(spec=httpx.Client),
        )
        service = CallService(
            session=db_session,
            telephony=twilio,
            settings=test_settings,
            telephony_config=telephony_config,
        )
        await CallRepository(db_session).create(
            test_user.id, CallType.OUTGOING, CallStatus.IN_PROGRESS, "CA_TS"
        )
        await db_session.commit()

        updated = await service.apply_status_callback(
            {
                "CallSid": "CA_TS",
                "CallStatus": "completed",
                "CallDuration": "30",
                "Timestamp": "Mon, 16 Aug 2010 03:45:01 +0000",
            }
        )

        assert updated.status == "completed"
        assert updated.ended_at.replace(tzinfo=None) == datetime(2010, 8, 16, 3, 45, 1)

    @pytest.mark.asyncio
    async def test_unknown_call(self, service: CallService) -> None:
        assert await service.apply_status_callback({"CallSid": "CA_NOPE", "CallStatus": "completed"}) is None

    @pytest.mark.asyncio
    async def test_invalid_payload(self, service: CallService) -> None:
        with pytest.raises(ValidationError):
            await service.apply_status_callback({"CallStatus": "completed"})


class TestHistory:
    @pytest.mark.asyncio
    async def test_history_newest_first(
        self,
        service: CallService,
        db_session: AsyncSession,
        test_user: User,
    ) -> None:
        repository = CallRepository(db_session)
        older = await repository.create(
            test_user.id,
            CallType.OUTGOING,
            CallStatus.COMPLETED,
            "CA_OLD",
            started_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        newer = await repository.create(test_user.id, CallType.INCOMING, CallStatus.RINGING, "CA_NEW")
        await db_session.commit()

        history = await service.history(test_user.id)

        assert [c.id for c in history] == [newer.id, older.id]
