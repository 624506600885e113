"""
Tests for request middleware and the authentication dependencies.
"""

import uuid

import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from second_brain.auth.dependencies import Authenticated, Principal, Unauthenticated, get_principal
from second_brain.auth.tokens import TokenService
from second_brain.config import Settings
from second_brain.shared.correlation import (
    CORRELATION_ID_HEADER,
    REQUEST_ID_HEADER,
    CorrelationIdMiddleware,
    get_correlation_id,
)
from second_brain.users.models import User


class TestCorrelationId:
    @pytest.mark.asyncio
    async def test_echoes_incoming_id(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/health", headers={CORRELATION_ID_HEADER: "abc-123"})

        assert response.headers[CORRELATION_ID_HEADER] == "abc-123"

    @pytest.mark.asyncio
    async def test_falls_back_to_request_id(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/health", headers={REQUEST_ID_HEADER: "req-9"})

        assert response.headers[CORRELATION_ID_HEADER] == "req-9"

    @pytest.mark.asyncio
    async def test_generates_id(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/health")

        uuid.UUID(response.headers[CORRELATION_ID_HEADER])

    @pytest.mark.asyncio
    async def test_id_visible_during_request(self) -> None:
        app = FastAPI()
        app.add_middleware(CorrelationIdMiddleware)

        @app.get("/probe")
        async def probe() -> dict[str, str | None]:
            return {"correlation_id": get_correlation_id()}

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/probe", headers={CORRELATION_ID_HEADER: "trace-1"})

        assert response.json() == {"correlation_id": "trace-1"}
        assert get_correlation_id() is None


class TestPrincipal:
    @pytest.fixture
    def principal_client(self, test_settings: Settings) -> AsyncClient:
        app = FastAPI()
        app.state.settings = test_settings

        @app.get("/whoami")
        async def whoami(principal: Principal = Depends(get_principal)) -> dict:
            if isinstance(principal, Authenticated):
                return {"user_id": principal.user_id}
            assert isinstance(principal, Unauthenticated)
            return {"reason": principal.reason}

        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("headers", "reason"),
        [
            ({}, "missing"),
            ({"Authorization": "Basic dXNlcjpwYXNz"}, "malformed"),
            ({"Authorization": "Bearer"}, "malformed"),
            ({"Authorization": "bearer abc"}, "malformed"),
            ({"Authorization": "BEARER abc"}, "malformed"),
            ({"Authorization": "Bearer not.a.jwt"}, "invalid"),
        ],
    )
    async def test_unauthenticated(self, principal_client: AsyncClient, headers: dict, reason: str) -> None:
        async with principal_client as client:
            response = await client.get("/whoami", headers=headers)

        assert response.json() == {"reason": reason}

    @pytest.mark.asyncio
    async def test_access_token(
        self,
        principal_client: AsyncClient,
        token_service: TokenService,
    ) -> None:
        token = token_service.issue_access_token(42)

        async with principal_client as client:
            response = await client.get("/whoami", headers={"Authorization": f"Bearer {token}"})

        assert response.json() == {"user_id": 42}

    @pytest.mark.asyncio
    async def test_refresh_token_is_not_a_bearer_credential(
        self,
        principal_client: AsyncClient,
        token_service: TokenService,
    ) -> None:
        token = token_service.issue_refresh_token(42)

        async with principal_client as client:
            response = await client.get("/whoami", headers={"Authorization": f"Bearer {token}"})

        assert response.json() == {"reason": "invalid"}


class TestRequireUser:
    @pytest.mark.asyncio
    async def test_valid_token(
        self,
        async_client: AsyncClient,
        test_user: User,
        auth_headers: dict[str, str],
    ) -> None:
        response = await async_client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["user"]["phoneNumber"] == test_user.phone_number

    @pytest.mark.asyncio
    async def test_token_signed_with_other_secret(self, async_client: AsyncClient, test_user: User) -> None:
        other = TokenService(Settings(_env_file=None, jwt_secret_key="someone-else"))
        token = other.issue_access_token(test_user.id)

        response = await async_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid token", "code": "INVALID_TOKEN"}

    @pytest.mark.asyncio
    async def test_scheme_is_case_sensitive(
        self,
        async_client: AsyncClient,
        test_user: User,
        token_service: TokenService,
    ) -> None:
        token = token_service.issue_access_token(test_user.id)

        response = await async_client.get("/api/auth/me", headers={"Authorization": f"bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"] == "Token format invalid"
