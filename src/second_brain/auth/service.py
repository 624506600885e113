"""
Authentication service orchestrating phone verification and session tokens.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from second_brain.auth.repository import AuthRepository
from second_brain.auth.tokens import TokenService
from second_brain.config import Settings, get_settings
from second_brain.shared.exceptions import (
    InvalidCodeError,
    InvalidRefreshTokenError,
    InvalidTokenError,
    UpstreamProviderError,
    UserNotFoundError,
)
from second_brain.shared.logging import get_logger
from second_brain.shared.phone import normalize_phone_number
from second_brain.telephony.interface import TelephonyProvider, TelephonyProviderError
from second_brain.users.models import User
from second_brain.users.repository import UserRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class VerifiedSession:
    """Result of a successful code confirmation."""

    user: User
    access_token: str
    refresh_token: str


class AuthService:
    """Service for phone verification and session operations."""

    def __init__(
        self,
        session: AsyncSession,
        telephony: TelephonyProvider,
        settings: Settings | None = None,
        token_service: TokenService | None = None,
        user_repository: UserRepository | None = None,
        auth_repository: AuthRepository | None = None,
    ) -> None:
        """Initialize authentication service.

        Args:
            session: Database session; the service commits on success.
            telephony: Provider that sends and checks one-time codes.
            settings: Application settings.
            token_service: Token issuer/verifier.
            user_repository: User repository.
            auth_repository: Auth record repository.
        """
        self._settings = settings or get_settings()
        self._session = session
        self._telephony = telephony
        self._tokens = token_service or TokenService(self._settings)
        self._users = user_repository or UserRepository(session)
        self._auth = auth_repository or AuthRepository(session)

    def normalize(self, phone_number: str) -> str:
        return normalize_phone_number(phone_number, self._settings.default_country_code)

    async def send_verification(self, phone_number: str) -> str:
        """Send a one-time code and remember the verification for the user.

        The user is created on the first attempt for an unseen number.

        Returns:
            The provider's verification id.
        """
        phone = self.normalize(phone_number)

        try:
            verification = await self._telephony.send_verification(phone)
        except TelephonyProviderError as e:
            logger.error(
                "Sending verification failed",
                extra={"error_code": e.error_code},
            )
            raise UpstreamProviderError(
                "Failed to send verification code",
                details={"error_code": e.error_code},
            ) from e

        user = await self._users.get_by_phone_number(phone)
        if user is None:
            user = await self._users.create(phone)
            logger.info("User created", extra={"user_id": user.id})

        await self._auth.upsert(user.id, verification_id=verification.sid)
        await self._session.commit()

        logger.info(
            "Verification sent",
            extra={"user_id": user.id, "verification_id": verification.sid},
        )
        return verification.sid

    async def verify_code(self, phone_number: str, code: str) -> VerifiedSession:
        """Confirm a one-time code and open a session.

        A rejected code persists nothing. An accepted code replaces any
        refresh token previously stored for the user.

        Raises:
            InvalidCodeError: The provider rejected the code.
            UserNotFoundError: No user exists for the phone number.
        """
        phone = self.normalize(phone_number)

        try:
            check = await self._telephony.check_verification(phone, code)
        except TelephonyProviderError as e:
            logger.error(
                "Checking verification failed",
                extra={"error_code": e.error_code},
            )
            raise UpstreamProviderError(
                "Failed to verify code",
                details={"error_code": e.error_code},
            ) from e

        if not check.approved:
            logger.info("Verification code rejected", extra={"status": check.status})
            raise InvalidCodeError()

        user = await self._users.get_by_phone_number(phone)
        if user is None:
            raise UserNotFoundError()

        tokens = self._tokens.issue(user.id)
        await self._auth.upsert(user.id, refresh_token=tokens.refresh_token)
        await self._session.commit()

        logger.info("User verified", extra={"user_id": user.id})
        return VerifiedSession(
            user=user,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        )

    async def refresh_access_token(self, refresh_token: str) -> str:
        """Exchange the current refresh token for a new access token.

        The refresh token is not rotated. It is only accepted while it is the
        one stored for its owner.

        Raises:
            InvalidRefreshTokenError: On any verification or lookup failure.
        """
        try:
            claims = self._tokens.verify(refresh_token)
        except InvalidTokenError as e:
            raise InvalidRefreshTokenError() from e

        if claims.type != "refresh":
            logger.warning("Access token presented as refresh token", extra={"user_id": claims.user_id})
            raise InvalidRefreshTokenError()

        record = await self._auth.get_by_refresh_token(refresh_token)
        if record is None or record.user_id != claims.user_id:
            logger.info("Refresh token not current", extra={"user_id": claims.user_id})
            raise InvalidRefreshTokenError()

        return self._tokens.issue_access_token(claims.user_id)

    async def get_profile(self, user_id: int) -> User:
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(details={"user_id": user_id})
        return user

    async def update_profile(self, user_id: int, name: str | None = None) -> User:
        user = await self._users.update(user_id, name=name)
        if user is None:
            raise UserNotFoundError(details={"user_id": user_id})
        await self._session.commit()
        logger.info("Profile updated", extra={"user_id": user_id})
        return user

    async def logout(self, user_id: int) -> None:
        """Revoke the user's refresh token."""
        revoked = await self._auth.revoke_refresh_token(user_id)
        await self._session.commit()
        logger.info("User logged out", extra={"user_id": user_id, "revoked": revoked})

    async def delete_account(self, user_id: int) -> None:
        """Remove the user together with everything they own."""
        deleted = await self._users.delete(user_id)
        if not deleted:
            raise UserNotFoundError(details={"user_id": user_id})
        await self._session.commit()
        logger.info("Account deleted", extra={"user_id": user_id})
