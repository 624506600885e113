"""
OpenAI chat-completions adapter over httpx.
"""

import time
from typing import Any

import httpx

from second_brain.assistant.gateway import BaseLLMAdapter
from second_brain.assistant.models import (
    ChatRequest,
    ChatResponse,
    LLMAuthenticationError,
    LLMProvider,
    LLMProviderError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from second_brain.shared.logging import get_logger

logger = get_logger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"


class OpenAIAdapter(BaseLLMAdapter):
    """OpenAI HTTP adapter (chat completions, text and JSON mode)."""

    def __init__(
        self,
        api_key: str,
        default_model: str = "gpt-4",
        timeout_seconds: float = 30.0,
        base_url: str | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        super().__init__(api_key, default_model, timeout_seconds)
        self._base_url = (base_url or OPENAI_BASE_URL).rstrip("/")
        self._chat_endpoint = f"{self._base_url}/chat/completions"
        self._http_client = http_client
        self._owns_client = http_client is None

    @property
    def provider(self) -> LLMProvider:
        return LLMProvider.OPENAI

    def _get_client(self) -> httpx.Client:
        if self._http_client is None:
            self._http_client = httpx.Client(timeout=httpx.Timeout(self._timeout_seconds))
        return self._http_client

    def close(self) -> None:
        if self._owns_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def _build_payload(self, request: ChatRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": request.model or self._default_model,
            "messages": [
                {"role": m.role.value, "content": m.content}
                for m in request.messages
            ],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
        }
        if request.json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    def chat_completion_sync(self, request: ChatRequest) -> ChatResponse:
        payload = self._build_payload(request)
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        started = time.perf_counter()
        try:
            r = self._get_client().post(self._chat_endpoint, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            logger.warning(
                "OpenAI request timed out",
                extra={"correlation_id": request.correlation_id, "model": payload["model"]},
            )
            raise LLMTimeoutError(
                "OpenAI request timed out",
                provider=self.provider,
                correlation_id=request.correlation_id,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            logger.error(
                "OpenAI request failed",
                extra={"correlation_id": request.correlation_id, "error": str(e)},
            )
            raise LLMProviderError(
                f"OpenAI request failed: {e!s}",
                provider=self.provider,
                correlation_id=request.correlation_id,
                original_error=e,
            ) from e
        latency_ms = (time.perf_counter() - started) * 1000

        if r.status_code == 401:
            raise LLMAuthenticationError(
                "OpenAI rejected the API key",
                provider=self.provider,
                correlation_id=request.correlation_id,
            )
        if r.status_code == 429:
            retry_after = r.headers.get("retry-after")
            raise LLMRateLimitError(
                "OpenAI rate limit exceeded",
                retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None,
                provider=self.provider,
                correlation_id=request.correlation_id,
            )
        if r.status_code != 200:
            logger.error(
                "OpenAI error response",
                extra={"status_code": r.status_code, "correlation_id": request.correlation_id},
            )
            raise LLMProviderError(
                f"OpenAI error {r.status_code}",
                provider=self.provider,
                correlation_id=request.correlation_id,
            )

        try:
            data = r.json()
            choices = data.get("choices") or []
            content = choices[0]["message"].get("content") if choices else None
        except (ValueError, KeyError, TypeError) as e:
            raise LLMProviderError(
                "Malformed OpenAI response",
                provider=self.provider,
                correlation_id=request.correlation_id,
                original_error=e,
            ) from e

        usage = {
            key: value
            for key, value in (data.get("usage") or {}).items()
            if isinstance(value, int)
        }

        logger.debug(
            "OpenAI completion",
            extra={
                "correlation_id": request.correlation_id,
                "model": payload["model"],
                "latency_ms": round(latency_ms, 1),
                "usage": usage,
            },
        )

        return ChatResponse(
            content=content,
            model=data.get("model", payload["model"]),
            provider=self.provider,
            usage=usage,
            correlation_id=request.correlation_id,
            latency_ms=latency_ms,
        )
