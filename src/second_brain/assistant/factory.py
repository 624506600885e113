"""
Factory for creating LLM gateway instances.
"""

from second_brain.assistant.gateway import LLMGateway
from second_brain.assistant.openai_adapter import OpenAIAdapter
from second_brain.config import Settings, get_settings
from second_brain.shared.logging import get_logger

logger = get_logger(__name__)


def create_llm_gateway(settings: Settings | None = None) -> LLMGateway:
    """Create the OpenAI gateway from settings.

    A missing API key is not fatal at startup; requests then fail with an
    authentication error from the provider.
    """
    settings = settings or get_settings()
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set; assistant requests will fail")

    logger.info(
        "Creating LLM gateway",
        extra={
            "provider": "openai",
            "model": settings.openai_assistant_model,
            "timeout_seconds": settings.openai_timeout_seconds,
        },
    )
    return OpenAIAdapter(
        api_key=settings.openai_api_key,
        default_model=settings.openai_assistant_model,
        timeout_seconds=settings.openai_timeout_seconds,
    )
