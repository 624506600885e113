"""
Pytest configuration and shared fixtures.

Every test runs against a fresh in-memory SQLite database, the mock
telephony provider and a scripted LLM gateway; nothing leaves the process.
"""

from collections import deque
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from second_brain.assistant.models import (
    ChatRequest,
    ChatResponse,
    LLMError,
    LLMProvider,
)
from second_brain.auth.tokens import TokenService
from second_brain.config import Settings
from second_brain.main import create_app
from second_brain.shared.database import DatabaseManager
from second_brain.telephony.config import ProviderType, TelephonyConfig
from second_brain.telephony.mock_adapter import MockTelephonyProvider
from second_brain.users.models import User

TEST_JWT_SECRET = "test-secret-key-for-unit-tests"


class FakeLLMGateway:
    """Scripted LLM gateway.

    Queued replies are returned in order (an exception instance is raised
    instead). With the queue empty, text requests get ``"OK"`` and JSON-mode
    requests get ``"null"``.
    """

    def __init__(self) -> None:
        self.replies: deque[str | None | Exception] = deque()
        self.requests: list[ChatRequest] = []

    @property
    def provider(self) -> LLMProvider:
        return LLMProvider.OPENAI

    @property
    def default_model(self) -> str:
        return "fake-model"

    def queue(self, *replies: str | None | Exception) -> None:
        self.replies.extend(replies)

    async def chat_completion(self, request: ChatRequest) -> ChatResponse:
        self.requests.append(request)
        if self.replies:
            reply = self.replies.popleft()
        else:
            reply = "null" if request.response_format == "json_object" else "OK"
        if isinstance(reply, LLMError):
            raise reply
        return ChatResponse(
            content=reply,
            model=self.default_model,
            provider=self.provider,
            correlation_id=request.correlation_id,
            latency_ms=1.0,
        )

    def close(self) -> None:
        pass


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        app_env="dev",
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key=TEST_JWT_SECRET,
        public_base_url="https://api.example.com/",
        db_create_schema=False,
        openai_api_key="sk-test",
        assistant_context_messages=10,
    )


@pytest.fixture
def telephony_config() -> TelephonyConfig:
    return TelephonyConfig(
        _env_file=None,
        provider_type=ProviderType.MOCK,
        twilio_phone_number="+15550000000",
        tts_voice="Polly.Joanna-Neural",
        media_stream_url="wss://media.example.com/stream",
        validate_signatures=False,
    )


@pytest.fixture
def telephony(telephony_config: TelephonyConfig) -> MockTelephonyProvider:
    return MockTelephonyProvider(telephony_config)


@pytest.fixture
def llm() -> FakeLLMGateway:
    return FakeLLMGateway()


@pytest.fixture
def token_service(test_settings: Settings) -> TokenService:
    return TokenService(test_settings)


@pytest_asyncio.fixture
async def db_manager(test_settings: Settings) -> AsyncGenerator[DatabaseManager, None]:
    manager = DatabaseManager(settings=test_settings)
    await manager.create_schema()
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def db_session(db_manager: DatabaseManager) -> AsyncGenerator[AsyncSession, None]:
    async with db_manager.session() as session:
        yield session


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    user = User(phone_number="+15551234567", name="Test User")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(test_user: User, token_service: TokenService) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_service.issue_access_token(test_user.id)}"}


@pytest.fixture
def app(
    test_settings: Settings,
    telephony: MockTelephonyProvider,
    llm: FakeLLMGateway,
    db_manager: DatabaseManager,
    telephony_config: TelephonyConfig,
) -> FastAPI:
    return create_app(
        settings=test_settings,
        telephony_provider=telephony,
        llm_gateway=llm,
        db_manager=db_manager,
        telephony_config=telephony_config,
    )


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
