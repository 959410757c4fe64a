from gateway.services.channel.base import ChannelProvider, MediaPayload, SendResult
from gateway.services.channel.twilio_provider import (
    TwilioProvider,
    compute_twilio_signature,
    format_phone_for_whatsapp,
    is_valid_phone_number,
    verify_twilio_signature,
)

__all__ = [
    "ChannelProvider",
    "MediaPayload",
    "SendResult",
    "TwilioProvider",
    "compute_twilio_signature",
    "format_phone_for_whatsapp",
    "is_valid_phone_number",
    "verify_twilio_signature",
]
