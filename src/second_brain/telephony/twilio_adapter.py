"""
Twilio telephony provider adapter.

Talks to the Twilio Verify and Programmable Voice REST APIs over httpx.
"""

import hashlib
import hmac
import time
from base64 import b64encode
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import httpx
import jwt

from second_brain.shared.logging import get_logger
from second_brain.telephony.config import TelephonyConfig, get_telephony_config
from second_brain.telephony.interface import (
    CallInitiationError,
    CallInitiationRequest,
    CallInitiationResponse,
    CallStatus,
    CallStatusEvent,
    ClientTokenError,
    TelephonyProvider,
    VerificationCheckResult,
    VerificationError,
    VerificationResult,
    WebhookParseError,
)

logger = get_logger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"
TWILIO_VERIFY_BASE = "https://verify.twilio.com/v2"

TWILIO_STATUS_MAP: dict[str, CallStatus] = {
    "queued": CallStatus.QUEUED,
    "initiated": CallStatus.INITIATED,
    "ringing": CallStatus.RINGING,
    "in-progress": CallStatus.IN_PROGRESS,
    "completed": CallStatus.COMPLETED,
    "busy": CallStatus.BUSY,
    "no-answer": CallStatus.NO_ANSWER,
    "failed": CallStatus.FAILED,
    "canceled": CallStatus.CANCELED,
}

# Twilio spells multi-word statuses with a hyphen ("in-progress").
PROVIDER_STATUS_NAMES: dict[CallStatus, str] = {status: name for name, status in TWILIO_STATUS_MAP.items()}


def parse_event_timestamp(value: str) -> datetime:
    """Parse a webhook ``Timestamp``: RFC 2822 as Twilio sends it, else ISO 8601.

    Raises:
        ValueError: Neither format matches.
    """
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def compute_signature(auth_token: str, url: str, params: dict[str, Any]) -> str:
    """Twilio request signature: HMAC-SHA1 over the URL plus sorted form params."""
    data_str = url
    for key in sorted(params.keys()):
        data_str += key + str(params[key])
    digest = hmac.new(
        auth_token.encode("utf-8"),
        data_str.encode("utf-8"),
        hashlib.sha1,
    ).digest()
    return b64encode(digest).decode("utf-8")


class TwilioAdapter(TelephonyProvider):
    """Twilio telephony provider adapter.

    Uses a sync httpx client; the inherited async entrypoints run these
    methods in a worker thread.
    """

    def __init__(
        self,
        config: TelephonyConfig | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._config = config or get_telephony_config()
        self._http_client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.Client:
        if self._http_client is None:
            self._http_client = httpx.Client(
                timeout=httpx.Timeout(self._config.request_timeout_seconds)
            )
        return self._http_client

    def close(self) -> None:
        if self._owns_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def _get_auth(self) -> tuple[str, str]:
        return (self._config.twilio_account_sid, self._config.twilio_auth_token)

    def _get_api_url(self, endpoint: str) -> str:
        account_sid = self._config.twilio_account_sid
        return f"{TWILIO_API_BASE}/Accounts/{account_sid}{endpoint}"

    def _get_verify_url(self, endpoint: str) -> str:
        service_sid = self._config.twilio_verify_service_sid
        return f"{TWILIO_VERIFY_BASE}/Services/{service_sid}{endpoint}"

    @staticmethod
    def _error_body(response: httpx.Response) -> dict[str, Any]:
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError:
            return {"body": response.text}
        return data if isinstance(data, dict) else {"body": data}

    def send_verification_sync(self, phone_number: str) -> VerificationResult:
        """Send an SMS one-time code through Twilio Verify."""
        client = self._get_client()
        try:
            response = client.post(
                self._get_verify_url("/Verifications"),
                data={"To": phone_number, "Channel": "sms"},
                auth=self._get_auth(),
            )
        except httpx.HTTPError as e:
            logger.exception("HTTP error during Twilio verification send")
            raise VerificationError(
                message=f"HTTP error: {e!s}",
                error_code="HTTP_ERROR",
            ) from e

        if response.status_code >= 400:
            error_data = self._error_body(response)
            logger.error(
                "Twilio verification send failed",
                extra={"status_code": response.status_code, "error": error_data},
            )
            raise VerificationError(
                message=error_data.get("message", "Verification send failed"),
                error_code=str(error_data.get("code", response.status_code)),
                provider_response=error_data,
            )

        data = response.json()
        return VerificationResult(sid=data["sid"], status=data.get("status", "pending"))

    def check_verification_sync(self, phone_number: str, code: str) -> VerificationCheckResult:
        """Check a one-time code through Twilio Verify.

        Twilio answers 404 once a verification is approved, expired or
        unknown; that is reported as a rejected check.
        """
        client = self._get_client()
        try:
            response = client.post(
                self._get_verify_url("/VerificationCheck"),
                data={"To": phone_number, "Code": code},
                auth=self._get_auth(),
            )
        except httpx.HTTPError as e:
            logger.exception("HTTP error during Twilio verification check")
            raise VerificationError(
                message=f"HTTP error: {e!s}",
                error_code="HTTP_ERROR",
            ) from e

        if response.status_code == 404:
            logger.info("Twilio verification not found or expired")
            return VerificationCheckResult(status="not_found", approved=False)

        if response.status_code >= 400:
            error_data = self._error_body(response)
            logger.error(
                "Twilio verification check failed",
                extra={"status_code": response.status_code, "error": error_data},
            )
            raise VerificationError(
                message=error_data.get("message", "Verification check failed"),
                error_code=str(error_data.get("code", response.status_code)),
                provider_response=error_data,
            )

        data = response.json()
        status = data.get("status", "")
        return VerificationCheckResult(status=status, approved=status == "approved")

    def initiate_call_sync(self, request: CallInitiationRequest) -> CallInitiationResponse:
        """Initiate an outbound call via Twilio (sync)."""
        client = self._get_client()

        payload: dict[str, Any] = {
            "To": request.to,
            "From": request.from_number,
            "Url": request.twiml_url,
            "Method": "POST",
        }
        if request.status_callback_url:
            payload["StatusCallback"] = request.status_callback_url
            payload["StatusCallbackMethod"] = "POST"
            payload["StatusCallbackEvent"] = ["initiated", "ringing", "answered", "completed"]

        logger.info("Initiating Twilio call", extra={"to": request.to})

        try:
            response = client.post(
                self._get_api_url("/Calls.json"),
                data=payload,
                auth=self._get_auth(),
            )
        except httpx.HTTPError as e:
            logger.exception("HTTP error during Twilio call initiation")
            raise CallInitiationError(
                message=f"HTTP error: {e!s}",
                error_code="HTTP_ERROR",
            ) from e

        if response.status_code >= 400:
            error_data = self._error_body(response)
            logger.error(
                "Twilio call initiation failed",
                extra={"status_code": response.status_code, "error": error_data},
            )
            raise CallInitiationError(
                message=error_data.get("message", "Call initiation failed"),
                error_code=str(error_data.get("code", response.status_code)),
                provider_response=error_data,
            )

        data = response.json()
        created_at = datetime.now(timezone.utc)
        if data.get("date_created"):
            try:
                created_at = parsedate_to_datetime(data["date_created"])
            except (TypeError, ValueError):
                logger.warning("Unparsable date_created", extra={"value": data["date_created"]})

        return CallInitiationResponse(
            provider_call_id=data["sid"],
            status=TWILIO_STATUS_MAP.get(data.get("status", ""), CallStatus.QUEUED),
            created_at=created_at,
            raw_response=data,
        )

    def generate_client_token(self, identity: str) -> str:
        """Mint a Voice SDK access token.

        The token is a JWT signed with the API key secret; its voice grant
        always allows incoming calls and allows outgoing calls through the
        configured TwiML application.
        """
        cfg = self._config
        if not (cfg.twilio_account_sid and cfg.twilio_api_key and cfg.twilio_api_secret):
            raise ClientTokenError(
                message="Twilio API key credentials are not configured",
                error_code="MISSING_CREDENTIALS",
            )

        now = int(time.time())
        voice_grant: dict[str, Any] = {"incoming": {"allow": True}}
        if cfg.twilio_twiml_app_sid:
            voice_grant["outgoing"] = {"application_sid": cfg.twilio_twiml_app_sid}

        payload = {
            "jti": f"{cfg.twilio_api_key}-{now}",
            "iss": cfg.twilio_api_key,
            "sub": cfg.twilio_account_sid,
            "iat": now,
            "exp": now + cfg.client_token_ttl_seconds,
            "grants": {"identity": identity, "voice": voice_grant},
        }
        return jwt.encode(
            payload,
            cfg.twilio_api_secret,
            algorithm="HS256",
            headers={"cty": "twilio-fpa;v=1"},
        )

    def parse_status_callback(self, payload: dict[str, Any]) -> CallStatusEvent:
        call_sid = payload.get("CallSid")
        call_status = str(payload.get("CallStatus", "")).lower()

        if not call_sid:
            raise WebhookParseError(
                message="Missing CallSid in webhook payload",
                error_code="MISSING_CALL_SID",
                provider_response=payload,
            )

        if not call_status:
            raise WebhookParseError(
                message="Missing CallStatus in webhook payload",
                error_code="MISSING_CALL_STATUS",
                provider_response=payload,
            )

        status = TWILIO_STATUS_MAP.get(call_status)
        if status is None:
            raise WebhookParseError(
                message=f"Unknown CallStatus: {call_status}",
                error_code="UNKNOWN_CALL_STATUS",
                provider_response=payload,
            )

        duration_seconds = None
        if payload.get("CallDuration"):
            try:
                duration_seconds = int(payload["CallDuration"])
            except (ValueError, TypeError):
                logger.warning(
                    "Unparsable CallDuration",
                    extra={"provider_call_id": call_sid, "value": payload["CallDuration"]},
                )

        timestamp = datetime.now(timezone.utc)
        if payload.get("Timestamp"):
            try:
                timestamp = parse_event_timestamp(str(payload["Timestamp"]))
            except ValueError:
                logger.warning(
                    "Unparsable Timestamp",
                    extra={"provider_call_id": call_sid, "value": payload["Timestamp"]},
                )

        return CallStatusEvent(
            provider_call_id=call_sid,
            status=status,
            timestamp=timestamp,
            duration_seconds=duration_seconds,
            error_code=payload.get("ErrorCode"),
            raw_payload=payload,
        )

    def validate_webhook_signature(self, params: dict[str, Any], signature: str, url: str) -> bool:
        if not self._config.twilio_auth_token:
            logger.warning("No auth token configured, skipping signature validation")
            return True
        if not signature:
            return False

        computed = compute_signature(self._config.twilio_auth_token, url, params)
        return hmac.compare_digest(computed, signature)
