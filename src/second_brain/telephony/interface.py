"""
Telephony provider interface definition.

Implementations are synchronous; the async entrypoints run them in a worker
thread so blocking HTTP calls never stall the event loop.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

import anyio.to_thread


class CallStatus(str, Enum):
    """Call status values."""

    QUEUED = "queued"
    INITIATED = "initiated"
    RINGING = "ringing"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BUSY = "busy"
    NO_ANSWER = "no_answer"
    FAILED = "failed"
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_CALL_STATUSES

    @property
    def rank(self) -> int:
        """Position in the call lifecycle; every terminal status ranks last."""
        if self.is_terminal:
            return len(CALL_LIFECYCLE)
        return CALL_LIFECYCLE.index(self)


TERMINAL_CALL_STATUSES = frozenset(
    {
        CallStatus.COMPLETED,
        CallStatus.BUSY,
        CallStatus.NO_ANSWER,
        CallStatus.FAILED,
        CallStatus.CANCELED,
    }
)

CALL_LIFECYCLE = (
    CallStatus.QUEUED,
    CallStatus.INITIATED,
    CallStatus.RINGING,
    CallStatus.IN_PROGRESS,
)


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of starting a phone verification."""

    sid: str
    status: str


@dataclass(frozen=True)
class VerificationCheckResult:
    """Outcome of checking a one-time code."""

    status: str
    approved: bool


@dataclass(frozen=True)
class CallInitiationRequest:
    """Request to initiate an outbound call."""

    to: str
    from_number: str
    twiml_url: str
    status_callback_url: str | None = None


@dataclass(frozen=True)
class CallInitiationResponse:
    """Response from call initiation."""

    provider_call_id: str
    status: CallStatus
    created_at: datetime
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CallStatusEvent:
    """Parsed status callback from the telephony provider."""

    provider_call_id: str
    status: CallStatus
    timestamp: datetime
    duration_seconds: int | None = None
    error_code: str | None = None
    raw_payload: dict[str, Any] = field(default_factory=dict)


class TelephonyProviderError(Exception):
    """Base exception for telephony provider errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        provider_response: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.provider_response = provider_response or {}


class VerificationError(TelephonyProviderError):
    """Error while sending or checking a verification."""


class CallInitiationError(TelephonyProviderError):
    """Error during call initiation."""


class ClientTokenError(TelephonyProviderError):
    """Error while minting a voice client token."""


class WebhookParseError(TelephonyProviderError):
    """Error parsing webhook event."""


class TelephonyProvider(ABC):
    """Abstract interface for telephony providers."""

    async def send_verification(self, phone_number: str) -> VerificationResult:
        return await anyio.to_thread.run_sync(self.send_verification_sync, phone_number)

    async def check_verification(self, phone_number: str, code: str) -> VerificationCheckResult:
        return await anyio.to_thread.run_sync(self.check_verification_sync, phone_number, code)

    async def initiate_call(self, request: CallInitiationRequest) -> CallInitiationResponse:
        return await anyio.to_thread.run_sync(self.initiate_call_sync, request)

    @abstractmethod
    def send_verification_sync(self, phone_number: str) -> VerificationResult:
        """Send a one-time code to the phone number over SMS."""
        ...

    @abstractmethod
    def check_verification_sync(self, phone_number: str, code: str) -> VerificationCheckResult:
        """Check a one-time code.

        An unknown or expired verification is a rejection, not an error.
        """
        ...

    @abstractmethod
    def initiate_call_sync(self, request: CallInitiationRequest) -> CallInitiationResponse:
        """Place an outbound call that fetches its instructions from ``twiml_url``."""
        ...

    @abstractmethod
    def generate_client_token(self, identity: str) -> str:
        """Mint an access token for a browser or mobile voice client."""
        ...

    @abstractmethod
    def parse_status_callback(self, payload: dict[str, Any]) -> CallStatusEvent:
        """Parse a call status callback from the provider."""
        ...

    @abstractmethod
    def validate_webhook_signature(
        self,
        params: dict[str, Any],
        signature: str,
        url: str,
    ) -> bool:
        """Validate webhook signature for authenticity."""
        ...

    def close(self) -> None:
        """Release provider resources."""
