"""FastAPI dependencies for authentication.

Optional authentication resolves to a ``Principal``; handlers that need a
user depend on ``require_user`` instead.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from second_brain.auth.service import AuthService
from second_brain.auth.tokens import TokenService
from second_brain.shared.dependencies import AppSettings, DbSession, Telephony
from second_brain.shared.exceptions import AuthenticationError, InvalidTokenError
from second_brain.shared.logging import get_logger

logger = get_logger(__name__)

# Security scheme for Bearer token
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Unauthenticated:
    """No credentials, or credentials that did not verify."""

    reason: str = "missing"


@dataclass(frozen=True)
class Authenticated:
    user_id: int


Principal = Unauthenticated | Authenticated


def get_token_service(settings: AppSettings) -> TokenService:
    return TokenService(settings)


def get_auth_service(
    session: DbSession,
    settings: AppSettings,
    telephony: Telephony,
    token_service: Annotated[TokenService, Depends(get_token_service)],
) -> AuthService:
    return AuthService(
        session=session,
        telephony=telephony,
        settings=settings,
        token_service=token_service,
    )


async def get_principal(
    request: Request,
    token_service: Annotated[TokenService, Depends(get_token_service)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
) -> Principal:
    """Resolve the caller from an exact ``Authorization: Bearer <token>`` header.

    Never raises; callers decide whether anonymity is acceptable.
    """
    if credentials is None:
        if request.headers.get("Authorization"):
            return Unauthenticated(reason="malformed")
        return Unauthenticated()
    # HTTPBearer matches the scheme case-insensitively; only "Bearer" is accepted.
    if not request.headers.get("Authorization", "").startswith("Bearer "):
        return Unauthenticated(reason="malformed")

    try:
        claims = token_service.verify(credentials.credentials)
    except InvalidTokenError:
        return Unauthenticated(reason="invalid")

    if claims.type != "access":
        logger.warning(
            "Refresh token presented as bearer credential",
            extra={"user_id": claims.user_id, "endpoint": request.url.path},
        )
        return Unauthenticated(reason="invalid")

    return Authenticated(user_id=claims.user_id)


async def require_user(
    request: Request,
    principal: Annotated[Principal, Depends(get_principal)],
) -> Authenticated:
    """Require an authenticated caller.

    Raises:
        AuthenticationError: Missing or malformed header, or invalid token.
    """
    if isinstance(principal, Authenticated):
        return principal

    logger.info(
        "Rejected unauthenticated request",
        extra={
            "endpoint": request.url.path,
            "method": request.method,
            "reason": principal.reason,
        },
    )
    if principal.reason == "missing":
        raise AuthenticationError("No token provided")
    if principal.reason == "malformed":
        raise AuthenticationError("Token format invalid")
    raise InvalidTokenError()


CurrentUser = Annotated[Authenticated, Depends(require_user)]
