"""JWT token handling for session management."""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Literal

import jwt
from jwt.exceptions import ExpiredSignatureError
from jwt.exceptions import InvalidTokenError as JWTInvalidTokenError

from second_brain.config import Settings, get_settings
from second_brain.shared.exceptions import InvalidTokenError
from second_brain.shared.logging import get_logger

logger = get_logger(__name__)

REFRESH_TOKEN_EXPIRE_DAYS = 30

TokenType = Literal["access", "refresh"]


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class TokenClaims:
    """Verified claims of a session token."""

    user_id: int
    type: TokenType


class TokenService:
    """Creates and verifies signed session tokens.

    Tokens are a pure function of the secret, the payload and the clock.
    Each one carries a random ``jti`` so two tokens issued for the same user
    within the same second are still distinct.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    def _encode(self, user_id: int, token_type: TokenType, lifetime: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "user_id": user_id,
            "type": token_type,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + lifetime,
        }
        return jwt.encode(
            payload,
            self._settings.jwt_secret_key,
            algorithm=self._settings.jwt_algorithm,
        )

    def issue_access_token(self, user_id: int) -> str:
        """Create a new access token."""
        return self._encode(
            user_id,
            "access",
            timedelta(minutes=self._settings.jwt_access_token_expire_minutes),
        )

    def issue_refresh_token(self, user_id: int) -> str:
        return self._encode(user_id, "refresh", timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS))

    def issue(self, user_id: int) -> TokenPair:
        """Create an access token and a refresh token for a user."""
        return TokenPair(
            access_token=self.issue_access_token(user_id),
            refresh_token=self.issue_refresh_token(user_id),
        )

    def verify(self, token: str) -> TokenClaims:
        """Check signature and expiry and return the token's claims.

        Raises:
            InvalidTokenError: For malformed, expired or wrongly signed tokens
                alike; the reason is logged but never surfaced.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.jwt_secret_key,
                algorithms=[self._settings.jwt_algorithm],
            )
        except ExpiredSignatureError as e:
            logger.info("Token expired")
            raise InvalidTokenError() from e
        except JWTInvalidTokenError as e:
            logger.warning("Invalid token", extra={"reason": str(e)})
            raise InvalidTokenError() from e

        user_id = payload.get("user_id")
        token_type = payload.get("type")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            logger.warning("Token without a user id")
            raise InvalidTokenError()
        if token_type not in ("access", "refresh"):
            logger.warning("Token with unknown type", extra={"token_type": token_type})
            raise InvalidTokenError()

        return TokenClaims(user_id=user_id, type=token_type)
