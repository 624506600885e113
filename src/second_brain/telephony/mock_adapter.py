"""
Mock telephony provider for development and tests.
"""

from datetime import datetime, timezone
from typing import Any

from second_brain.shared.logging import get_logger
from second_brain.telephony.config import TelephonyConfig
from second_brain.telephony.interface import (
    CallInitiationError,
    CallInitiationRequest,
    CallInitiationResponse,
    CallStatus,
    CallStatusEvent,
    TelephonyProvider,
    VerificationCheckResult,
    VerificationError,
    VerificationResult,
    WebhookParseError,
)
from second_brain.telephony.twilio_adapter import TWILIO_STATUS_MAP

logger = get_logger(__name__)

MOCK_APPROVED_CODE = "123456"


class MockTelephonyProvider(TelephonyProvider):
    """In-memory telephony provider.

    Approves exactly one code (``123456`` unless configured otherwise) and
    records every verification and call it is asked for.
    """

    def __init__(
        self,
        config: TelephonyConfig | None = None,
        approved_code: str = MOCK_APPROVED_CODE,
    ) -> None:
        self._config = config
        self.approved_code = approved_code
        self._verifications: list[str] = []
        self._checks: list[tuple[str, str]] = []
        self._calls: list[CallInitiationRequest] = []
        self._next_id: int = 1
        self._should_fail: bool = False
        self._fail_error: str = "Mock failure"
        self._fail_code: str = "MOCK_ERROR"
        self._default_status: CallStatus = CallStatus.QUEUED

    def reset(self) -> None:
        self._verifications.clear()
        self._checks.clear()
        self._calls.clear()
        self._next_id = 1
        self._should_fail = False
        self._default_status = CallStatus.QUEUED

    def configure_failure(
        self,
        should_fail: bool = True,
        error_message: str = "Mock failure",
        error_code: str = "MOCK_ERROR",
    ) -> None:
        self._should_fail = should_fail
        self._fail_error = error_message
        self._fail_code = error_code

    def configure_status(self, status: CallStatus) -> None:
        self._default_status = status

    @property
    def verifications(self) -> list[str]:
        return self._verifications.copy()

    @property
    def checks(self) -> list[tuple[str, str]]:
        return self._checks.copy()

    @property
    def calls(self) -> list[CallInitiationRequest]:
        return self._calls.copy()

    def get_last_call(self) -> CallInitiationRequest | None:
        return self._calls[-1] if self._calls else None

    def _next_sid(self, prefix: str) -> str:
        sid = f"{prefix}_MOCK_{self._next_id:06d}"
        self._next_id += 1
        return sid

    def send_verification_sync(self, phone_number: str) -> VerificationResult:
        logger.info("Mock: Sending verification")
        if self._should_fail:
            raise VerificationError(message=self._fail_error, error_code=self._fail_code)
        self._verifications.append(phone_number)
        return VerificationResult(sid=self._next_sid("VE"), status="pending")

    def check_verification_sync(self, phone_number: str, code: str) -> VerificationCheckResult:
        if self._should_fail:
            raise VerificationError(message=self._fail_error, error_code=self._fail_code)
        self._checks.append((phone_number, code))
        if phone_number in self._verifications and code == self.approved_code:
            return VerificationCheckResult(status="approved", approved=True)
        return VerificationCheckResult(status="pending", approved=False)

    def initiate_call_sync(self, request: CallInitiationRequest) -> CallInitiationResponse:
        logger.info("Mock: Initiating call", extra={"to": request.to})
        if self._should_fail:
            raise CallInitiationError(message=self._fail_error, error_code=self._fail_code)

        self._calls.append(request)
        provider_call_id = self._next_sid("CA")
        return CallInitiationResponse(
            provider_call_id=provider_call_id,
            status=self._default_status,
            created_at=datetime.now(timezone.utc),
            raw_response={"mock": True, "sid": provider_call_id},
        )

    def generate_client_token(self, identity: str) -> str:
        return f"mock-voice-token-{identity}"

    def parse_status_callback(self, payload: dict[str, Any]) -> CallStatusEvent:
        call_sid = payload.get("CallSid")
        call_status = str(payload.get("CallStatus", "")).lower()
        if not call_sid or call_status not in TWILIO_STATUS_MAP:
            raise WebhookParseError(
                message="Invalid status callback payload",
                error_code="INVALID_PAYLOAD",
                provider_response=payload,
            )

        duration = payload.get("CallDuration")
        return CallStatusEvent(
            provider_call_id=call_sid,
            status=TWILIO_STATUS_MAP[call_status],
            timestamp=datetime.now(timezone.utc),
            duration_seconds=int(duration) if str(duration or "").isdigit() else None,
            raw_payload=payload,
        )

    def validate_webhook_signature(self, params: dict[str, Any], signature: str, url: str) -> bool:
        return True
