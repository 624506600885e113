"""
Tests for the authentication service.
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from second_brain.auth.models import AuthRecord
from second_brain.auth.repository import AuthRepository
from second_brain.auth.service import AuthService
from second_brain.auth.tokens import TokenService
from second_brain.config import Settings
from second_brain.shared.exceptions import (
    InvalidCodeError,
    InvalidRefreshTokenError,
    UpstreamProviderError,
    UserNotFoundError,
)
from second_brain.telephony.mock_adapter import MOCK_APPROVED_CODE, MockTelephonyProvider
from second_brain.users.models import User
from second_brain.users.repository import UserRepository

PHONE = "+15557654321"


@pytest.fixture
def service(
    db_session: AsyncSession,
    telephony: MockTelephonyProvider,
    test_settings: Settings,
    token_service: TokenService,
) -> AuthService:
    return AuthService(
        session=db_session,
        telephony=telephony,
        settings=test_settings,
        token_service=token_service,
    )


async def _count(session: AsyncSession, model: type) -> int:
    result = await session.execute(select(func.count()).select_from(model))
    return result.scalar_one()


class TestSendVerification:
    @pytest.mark.asyncio
    async def test_creates_user_and_auth_record(
        self,
        service: AuthService,
        db_session: AsyncSession,
        telephony: MockTelephonyProvider,
    ) -> None:
        sid = await service.send_verification("(555) 765-4321")

        user = await UserRepository(db_session).get_by_phone_number(PHONE)
        assert user is not None
        record = await AuthRepository(db_session).get_by_user_id(user.id)
        assert record is not None
        assert record.verification_id == sid
        assert telephony.verifications == [PHONE]

    @pytest.mark.asyncio
    async def test_repeated_sends_keep_one_user_and_one_record(
        self,
        service: AuthService,
        db_session: AsyncSession,
    ) -> None:
        first = await service.send_verification(PHONE)
        second = await service.send_verification("555-765-4321")

        assert first != second
        assert await _count(db_session, User) == 1
        assert await _count(db_session, AuthRecord) == 1
        record = await AuthRepository(db_session).get_by_verification_id(second)
        assert record is not None

    @pytest.mark.asyncio
    async def test_provider_failure_persists_nothing(
        self,
        service: AuthService,
        db_session: AsyncSession,
        telephony: MockTelephonyProvider,
    ) -> None:
        telephony.configure_failure()

        with pytest.raises(UpstreamProviderError) as exc_info:
            await service.send_verification(PHONE)

        assert exc_info.value.message == "Failed to send verification code"
        assert await _count(db_session, User) == 0


class TestVerifyCode:
    @pytest.mark.asyncio
    async def test_accepted_code_issues_tokens(
        self,
        service: AuthService,
        db_session: AsyncSession,
        token_service: TokenService,
    ) -> None:
        await service.send_verification(PHONE)

        result = await service.verify_code(PHONE, MOCK_APPROVED_CODE)

        assert result.user.phone_number == PHONE
        assert token_service.verify(result.access_token).type == "access"
        assert token_service.verify(result.refresh_token).user_id == result.user.id
        record = await AuthRepository(db_session).get_by_user_id(result.user.id)
        assert record is not None
        assert record.refresh_token == result.refresh_token

    @pytest.mark.asyncio
    async def test_rejected_code_persists_no_refresh_token(
        self,
        service: AuthService,
        db_session: AsyncSession,
    ) -> None:
        await service.send_verification(PHONE)

        with pytest.raises(InvalidCodeError):
            await service.verify_code(PHONE, "000000")

        user = await UserRepository(db_session).get_by_phone_number(PHONE)
        record = await AuthRepository(db_session).get_by_user_id(user.id)
        assert record.refresh_token is None

    @pytest.mark.asyncio
    async def test_code_without_prior_send_is_rejected(self, service: AuthService) -> None:
        with pytest.raises(InvalidCodeError):
            await service.verify_code(PHONE, MOCK_APPROVED_CODE)

    @pytest.mark.asyncio
    async def test_unknown_user_after_approval(
        self,
        service: AuthService,
        telephony: MockTelephonyProvider,
    ) -> None:
        # Verification sent directly through the provider, bypassing user creation.
        await telephony.send_verification(PHONE)

        with pytest.raises(UserNotFoundError):
            await service.verify_code(PHONE, MOCK_APPROVED_CODE)

    @pytest.mark.asyncio
    async def test_provider_failure(
        self,
        service: AuthService,
        telephony: MockTelephonyProvider,
    ) -> None:
        await service.send_verification(PHONE)
        telephony.configure_failure()

        with pytest.raises(UpstreamProviderError) as exc_info:
            await service.verify_code(PHONE, MOCK_APPROVED_CODE)

        assert exc_info.value.message == "Failed to verify code"


class TestRefreshAccessToken:
    @pytest.mark.asyncio
    async def test_current_refresh_token_is_exchanged(
        self,
        service: AuthService,
        token_service: TokenService,
    ) -> None:
        await service.send_verification(PHONE)
        session = await service.verify_code(PHONE, MOCK_APPROVED_CODE)

        access_token = await service.refresh_access_token(session.refresh_token)

        claims = token_service.verify(access_token)
        assert claims.user_id == session.user.id
        assert claims.type == "access"

    @pytest.mark.asyncio
    async def test_overwritten_refresh_token_is_rejected(self, service: AuthService) -> None:
        await service.send_verification(PHONE)
        first = await service.verify_code(PHONE, MOCK_APPROVED_CODE)
        await service.send_verification(PHONE)
        second = await service.verify_code(PHONE, MOCK_APPROVED_CODE)

        with pytest.raises(InvalidRefreshTokenError):
            await service.refresh_access_token(first.refresh_token)
        assert await service.refresh_access_token(second.refresh_token)

    @pytest.mark.asyncio
    async def test_access_token_is_not_a_refresh_token(self, service: AuthService) -> None:
        await service.send_verification(PHONE)
        session = await service.verify_code(PHONE, MOCK_APPROVED_CODE)

        with pytest.raises(InvalidRefreshTokenError):
            await service.refresh_access_token(session.access_token)

    @pytest.mark.asyncio
    async def test_garbage_token(self, service: AuthService) -> None:
        with pytest.raises(InvalidRefreshTokenError):
            await service.refresh_access_token("not-a-jwt")

    @pytest.mark.asyncio
    async def test_logout_revokes_refresh_token(self, service: AuthService) -> None:
        await service.send_verification(PHONE)
        session = await service.verify_code(PHONE, MOCK_APPROVED_CODE)

        await service.logout(session.user.id)

        with pytest.raises(InvalidRefreshTokenError):
            await service.refresh_access_token(session.refresh_token)


class TestProfile:
    @pytest.mark.asyncio
    async def test_update_profile(self, service: AuthService, test_user: User) -> None:
        user = await service.update_profile(test_user.id, name="Ada")

        assert user.name == "Ada"
        assert user.phone_number == test_user.phone_number

    @pytest.mark.asyncio
    async def test_get_missing_profile(self, service: AuthService) -> None:
        with pytest.raises(UserNotFoundError):
            await service.get_profile(4242)

    @pytest.mark.asyncio
    async def test_delete_account(
        self,
        service: AuthService,
        db_session: AsyncSession,
        test_user: User,
    ) -> None:
        await service.delete_account(test_user.id)

        assert await _count(db_session, User) == 0
        with pytest.raises(UserNotFoundError):
            await service.delete_account(test_user.id)
