"""
Chat-completion request/response types and gateway errors.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class LLMProvider(str, Enum):
    OPENAI = "openai"


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """One turn of the conversation sent to the model."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "ChatMessage":
        return cls(role=MessageRole.ASSISTANT, content=content)


class ChatRequest(BaseModel):
    """Chat completion request.

    ``response_format="json_object"`` asks the provider for a single JSON
    object instead of free text.
    """

    messages: list[ChatMessage]
    model: str | None = None
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=500, gt=0)
    response_format: Literal["text", "json_object"] = "text"
    correlation_id: str = Field(default_factory=lambda: str(uuid4()))

    @property
    def json_mode(self) -> bool:
        return self.response_format == "json_object"


class ChatResponse(BaseModel):
    """Completion returned by a gateway; ``content`` is None when the model sent nothing."""

    content: str | None
    model: str
    provider: LLMProvider
    usage: dict[str, int] = Field(default_factory=dict)
    correlation_id: str
    latency_ms: float
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class LLMError(Exception):
    """A chat completion could not be obtained from the provider."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        correlation_id: str | None = None,
        provider: LLMProvider | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.correlation_id = correlation_id
        self.provider = provider
        self.original_error = original_error


class LLMTimeoutError(LLMError):
    """The provider did not answer within the configured timeout."""

    retryable = True


class LLMRateLimitError(LLMError):
    """The provider throttled the request; ``retry_after`` is in seconds when known."""

    retryable = True

    def __init__(self, message: str, retry_after: float | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class LLMAuthenticationError(LLMError):
    """The provider rejected the API key."""


class LLMProviderError(LLMError):
    """Any other provider failure, including malformed responses."""
