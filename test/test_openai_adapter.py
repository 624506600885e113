"""Tests for the OpenAI chat-completions adapter (sync, no network)."""

from unittest.mock import MagicMock

import httpx
import pytest

from second_brain.assistant.models import (
    ChatMessage,
    ChatRequest,
    LLMAuthenticationError,
    LLMProviderError,
    LLMRateLimitError,
    LLMTimeoutError,
    MessageRole,
)
from second_brain.assistant.openai_adapter import OpenAIAdapter


@pytest.fixture
def mock_client() -> MagicMock:
    return MagicMock(spec=httpx.Client)


@pytest.fixture
def adapter(mock_client: MagicMock) -> OpenAIAdapter:
    return OpenAIAdapter(api_key="sk-test", default_model="gpt-4", http_client=mock_client)


def _request(**kwargs) -> ChatRequest:
    return ChatRequest(
        messages=[
            ChatMessage(role=MessageRole.SYSTEM, content="Be brief."),
            ChatMessage(role=MessageRole.USER, content="Hello"),
        ],
        **kwargs,
    )


def _completion(content: str | None) -> dict:
    return {
        "model": "gpt-4-0613",
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15},
    }


class TestChatCompletion:
    def test_text_completion(self, adapter: OpenAIAdapter, mock_client: MagicMock) -> None:
        mock_client.post.return_value = httpx.Response(200, json=_completion("Hi there"))

        response = adapter.chat_completion_sync(_request())

        assert response.content == "Hi there"
        assert response.model == "gpt-4-0613"
        assert response.usage["total_tokens"] == 15

        args, kwargs = mock_client.post.call_args
        assert args[0] == "https://api.openai.com/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
        payload = kwargs["json"]
        assert payload["model"] == "gpt-4"
        assert payload["messages"][1] == {"role": "user", "content": "Hello"}
        assert payload["max_tokens"] == 500
        assert "response_format" not in payload

    def test_json_mode(self, adapter: OpenAIAdapter, mock_client: MagicMock) -> None:
        mock_client.post.return_value = httpx.Response(200, json=_completion('{"a": 1}'))

        adapter.chat_completion_sync(_request(response_format="json_object", max_tokens=250, temperature=0.2))

        payload = mock_client.post.call_args.kwargs["json"]
        assert payload["response_format"] == {"type": "json_object"}
        assert payload["max_tokens"] == 250
        assert payload["temperature"] == 0.2

    def test_empty_choices_yield_no_content(self, adapter: OpenAIAdapter, mock_client: MagicMock) -> None:
        mock_client.post.return_value = httpx.Response(200, json={"choices": []})

        assert adapter.chat_completion_sync(_request()).content is None

    def test_custom_base_url(self, mock_client: MagicMock) -> None:
        adapter = OpenAIAdapter(api_key="k", base_url="http://llm.local/v1/", http_client=mock_client)
        mock_client.post.return_value = httpx.Response(200, json=_completion("ok"))

        adapter.chat_completion_sync(_request())

        assert mock_client.post.call_args.args[0] == "http://llm.local/v1/chat/completions"


class TestErrors:
    def test_timeout(self, adapter: OpenAIAdapter, mock_client: MagicMock) -> None:
        mock_client.post.side_effect = httpx.ReadTimeout("slow")

        with pytest.raises(LLMTimeoutError):
            adapter.chat_completion_sync(_request())

    def test_network_error(self, adapter: OpenAIAdapter, mock_client: MagicMock) -> None:
        mock_client.post.side_effect = httpx.ConnectError("refused")

        with pytest.raises(LLMProviderError):
            adapter.chat_completion_sync(_request())

    def test_unauthorized(self, adapter: OpenAIAdapter, mock_client: MagicMock) -> None:
        mock_client.post.return_value = httpx.Response(401, json={"error": {"message": "bad key"}})

        with pytest.raises(LLMAuthenticationError):
            adapter.chat_completion_sync(_request())

    def test_rate_limited(self, adapter: OpenAIAdapter, mock_client: MagicMock) -> None:
        mock_client.post.return_value = httpx.Response(429, headers={"retry-after": "20"}, json={})

        with pytest.raises(LLMRateLimitError) as exc_info:
            adapter.chat_completion_sync(_request())

        assert exc_info.value.retry_after == 20.0

    def test_server_error(self, adapter: OpenAIAdapter, mock_client: MagicMock) -> None:
        mock_client.post.return_value = httpx.Response(500, text="oops")

        with pytest.raises(LLMProviderError):
            adapter.chat_completion_sync(_request())

    def test_malformed_body(self, adapter: OpenAIAdapter, mock_client: MagicMock) -> None:
        mock_client.post.return_value = httpx.Response(200, text="not json")

        with pytest.raises(LLMProviderError):
            adapter.chat_completion_sync(_request())


@pytest.mark.asyncio
async def test_async_entrypoint_runs_sync_call(adapter: OpenAIAdapter, mock_client: MagicMock) -> None:
    mock_client.post.return_value = httpx.Response(200, json=_completion("async ok"))

    response = await adapter.chat_completion(_request())

    assert response.content == "async ok"
