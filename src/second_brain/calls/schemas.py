"""
Pydantic schemas for call endpoints.
"""

from datetime import datetime

from second_brain.shared.schemas import CamelModel, SuccessResponse


class ClientTokenResponse(CamelModel):
    token: str


class OutgoingCallRequest(CamelModel):
    phone_number: str | None = None


class OutgoingCallResponse(SuccessResponse):
    call_sid: str | None
    status: str


class CallRecord(CamelModel):
    """A call as shown in the user's history."""

    id: int
    provider_call_id: str | None = None
    type: str
    status: str
    duration: int | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    created_at: datetime


class CallHistoryResponse(SuccessResponse):
    calls: list[CallRecord]
