"""FastAPI dependencies for call endpoints."""

from typing import Annotated

from fastapi import Depends, Request

from second_brain.calls.service import CallService
from second_brain.shared.dependencies import AppSettings, DbSession, Telephony, TelephonySettings
from second_brain.shared.exceptions import WebhookSignatureError
from second_brain.shared.logging import get_logger

logger = get_logger(__name__)

SIGNATURE_HEADER = "X-Twilio-Signature"


def get_call_service(
    session: DbSession,
    settings: AppSettings,
    telephony: Telephony,
    telephony_config: TelephonySettings,
) -> CallService:
    return CallService(
        session=session,
        telephony=telephony,
        settings=settings,
        telephony_config=telephony_config,
    )


async def read_webhook_params(request: Request) -> dict[str, str]:
    """Form fields of a provider webhook (empty for bodiless requests)."""
    if request.method != "POST":
        return {}
    form = await request.form()
    return {key: str(value) for key, value in form.items()}


async def verify_webhook_signature(
    request: Request,
    params: Annotated[dict[str, str], Depends(read_webhook_params)],
    settings: AppSettings,
    telephony: Telephony,
    telephony_config: TelephonySettings,
) -> dict[str, str]:
    """Check ``X-Twilio-Signature`` when signature validation is enabled.

    The signed URL is the public URL the provider called, so it is rebuilt
    from ``PUBLIC_BASE_URL`` rather than from the (possibly proxied) request.

    Returns:
        The webhook's form parameters.
    """
    if not telephony_config.validate_signatures:
        return params

    url = f"{settings.public_base}{request.url.path}"
    if request.url.query:
        url = f"{url}?{request.url.query}"

    signature = request.headers.get(SIGNATURE_HEADER, "")
    if not telephony.validate_webhook_signature(params, signature, url):
        logger.warning("Webhook signature rejected", extra={"endpoint": request.url.path})
        raise WebhookSignatureError()
    return params
