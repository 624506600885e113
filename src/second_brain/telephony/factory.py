"""
Telephony provider factory.
"""

from second_brain.shared.logging import get_logger, mask
from second_brain.telephony.config import ProviderType, TelephonyConfig, get_telephony_config
from second_brain.telephony.interface import TelephonyProvider
from second_brain.telephony.mock_adapter import MockTelephonyProvider
from second_brain.telephony.twilio_adapter import TwilioAdapter

logger = get_logger(__name__)


def create_telephony_provider(config: TelephonyConfig | None = None) -> TelephonyProvider:
    """Create the telephony provider selected by ``TELEPHONY_PROVIDER_TYPE``."""
    cfg = config or get_telephony_config()

    logger.info(
        "Telephony config resolved",
        extra={
            "provider_type": cfg.provider_type.value,
            "twilio_account_sid": mask(cfg.twilio_account_sid),
            "twilio_verify_service_sid": mask(cfg.twilio_verify_service_sid),
            "twilio_phone_number": cfg.twilio_phone_number,
            "validate_signatures": cfg.validate_signatures,
        },
    )

    if cfg.provider_type == ProviderType.TWILIO:
        return TwilioAdapter(cfg)

    if cfg.provider_type == ProviderType.MOCK:
        return MockTelephonyProvider(cfg)

    raise ValueError(f"Unsupported telephony provider_type: {cfg.provider_type}")
