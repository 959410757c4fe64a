import base64
import hashlib
import hmac
import re
from typing import Mapping, Optional

import httpx

from gateway.logging_config import get_logger, mask_phone
from gateway.services.channel.base import ChannelProvider, MediaPayload, SendResult

logger = get_logger("channel.twilio")

WHATSAPP_PREFIX = "whatsapp:"


def format_phone_for_whatsapp(phone: str, default_country_code: str = "971") -> str:
    """Normalize a phone number to "whatsapp:+<digits>".

    "050 123 4567" -> "whatsapp:+971501234567", "00447700900123" -> "whatsapp:+447700900123".
    """
    cleaned = re.sub(r"[^\d+]", "", phone or "")
    if cleaned.startswith("+"):
        cleaned = cleaned[1:]
    if cleaned.startswith("00"):
        cleaned = cleaned[2:]
    if cleaned.startswith("0"):
        cleaned = default_country_code + cleaned[1:]
    if not cleaned.startswith(default_country_code) and len(cleaned) <= 10:
        cleaned = default_country_code + cleaned
    return f"{WHATSAPP_PREFIX}+{cleaned}"


def is_valid_phone_number(phone: Optional[str]) -> bool:
    digits = re.sub(r"\D", "", phone or "")
    return 8 <= len(digits) <= 15


def compute_twilio_signature(auth_token: str, url: str, params: Mapping[str, str]) -> str:
    payload = url + "".join(f"{key}{params[key]}" for key in sorted(params))
    digest = hmac.new(auth_token.encode("utf-8"), payload.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_twilio_signature(
    signature: Optional[str],
    url: str,
    params: Mapping[str, str],
    auth_token: Optional[str],
) -> bool:
    if not signature or not auth_token:
        return False
    expected = compute_twilio_signature(auth_token, url, params)
    return hmac.compare_digest(expected, signature)


class TwilioProvider(ChannelProvider):
    """Twilio WhatsApp API over the REST Messages resource."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        *,
        api_base: str = "https://api.twilio.com/2010-04-01",
        timeout_seconds: float = 30.0,
        media_timeout_seconds: float = 15.0,
        media_max_bytes: int = 10 * 1024 * 1024,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.api_base = api_base.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.media_timeout_seconds = media_timeout_seconds
        self.media_max_bytes = media_max_bytes

    @property
    def _auth(self) -> tuple[str, str]:
        return (self.account_sid, self.auth_token)

    @property
    def _sender(self) -> str:
        if self.from_number.startswith(WHATSAPP_PREFIX):
            return self.from_number
        return f"{WHATSAPP_PREFIX}{self.from_number}"

    async def send_message(self, to: str, body: str) -> SendResult:
        url = f"{self.api_base}/Accounts/{self.account_sid}/Messages.json"
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            response = await client.post(
                url,
                auth=self._auth,
                data={"To": to, "From": self._sender, "Body": body},
            )

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code >= 300:
            error = data.get("message") or data.get("error_message") or f"HTTP {response.status_code}"
            code = data.get("code") or data.get("error_code")
            logger.warning(
                "Twilio rejected message",
                extra={"context": {"to": mask_phone(to), "status_code": response.status_code, "error": error}},
            )
            return SendResult(success=False, error=error, error_code=str(code) if code is not None else None)

        return SendResult(success=True, message_sid=data.get("sid"), status=data.get("status") or "queued")

    async def fetch_media(self, url: str) -> MediaPayload:
        async with httpx.AsyncClient(timeout=self.media_timeout_seconds, follow_redirects=True) as client:
            response = await client.get(url, auth=self._auth)

        if response.status_code != 200:
            raise Exception(f"Media download failed: HTTP {response.status_code}")

        data = response.content
        if len(data) > self.media_max_bytes:
            raise Exception(f"Media too large: {len(data)} bytes")

        content_type = response.headers.get("content-type", "application/octet-stream")
        return MediaPayload(data=data, content_type=content_type)

    async def fetch_account(self) -> dict:
        url = f"{self.api_base}/Accounts/{self.account_sid}.json"
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            response = await client.get(url, auth=self._auth)

        if response.status_code != 200:
            raise Exception(f"Twilio account lookup failed: HTTP {response.status_code}")

        data = response.json()
        return {
            "sid": data.get("sid"),
            "friendly_name": data.get("friendly_name"),
            "status": data.get("status"),
            "type": data.get("type"),
        }
