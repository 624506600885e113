"""
Voice call API endpoints and provider webhooks.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from second_brain.auth.dependencies import CurrentUser
from second_brain.calls.dependencies import get_call_service, verify_webhook_signature
from second_brain.calls.schemas import (
    CallHistoryResponse,
    CallRecord,
    ClientTokenResponse,
    OutgoingCallRequest,
    OutgoingCallResponse,
)
from second_brain.calls.service import CallService
from second_brain.shared.exceptions import ValidationError
from second_brain.telephony.interface import CallStatus
from second_brain.telephony.twilio_adapter import PROVIDER_STATUS_NAMES

router = APIRouter(prefix="/api/calls", tags=["calls"])

CallServiceDep = Annotated[CallService, Depends(get_call_service)]
WebhookParams = Annotated[dict[str, str], Depends(verify_webhook_signature)]

XML_MEDIA_TYPE = "application/xml"


@router.get("/token", response_model=ClientTokenResponse)
async def client_token(current_user: CurrentUser, service: CallServiceDep) -> ClientTokenResponse:
    """Issue a Voice SDK token for the authenticated user."""
    return ClientTokenResponse(token=service.client_token(current_user.user_id))


@router.post("/incoming")
async def incoming_call(params: WebhookParams, service: CallServiceDep) -> Response:
    """Answer an inbound call with TwiML."""
    document = await service.handle_incoming(
        from_number=params.get("From", ""),
        to_number=params.get("To", ""),
        call_sid=params.get("CallSid", ""),
    )
    return Response(content=document, media_type=XML_MEDIA_TYPE)


@router.post("/outgoing", response_model=OutgoingCallResponse)
async def outgoing_call(
    body: OutgoingCallRequest,
    current_user: CurrentUser,
    service: CallServiceDep,
) -> OutgoingCallResponse:
    """Call a phone number and connect it to the user's assistant."""
    if not body.phone_number:
        raise ValidationError("Phone number is required")

    call = await service.initiate_outgoing(current_user.user_id, body.phone_number)
    return OutgoingCallResponse(
        call_sid=call.provider_call_id,
        status=PROVIDER_STATUS_NAMES[CallStatus(call.status)],
    )


@router.get("/history", response_model=CallHistoryResponse)
async def call_history(current_user: CurrentUser, service: CallServiceDep) -> CallHistoryResponse:
    calls = await service.history(current_user.user_id)
    return CallHistoryResponse(calls=[CallRecord.model_validate(call) for call in calls])


@router.api_route("/twiml/{user_id}", methods=["GET", "POST"])
async def user_twiml(user_id: int, params: WebhookParams, service: CallServiceDep) -> Response:
    """TwiML fetched by the provider once an outgoing call is answered."""
    return Response(content=service.twiml_for_user(user_id), media_type=XML_MEDIA_TYPE)


@router.post("/status", status_code=status.HTTP_204_NO_CONTENT)
async def call_status(params: WebhookParams, service: CallServiceDep) -> Response:
    """Provider status callback."""
    await service.apply_status_callback(params)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
