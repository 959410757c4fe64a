from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class SendResult:
    success: bool
    message_sid: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


@dataclass
class MediaPayload:
    data: bytes
    content_type: str


class ChannelProvider(ABC):
    """Abstract base class for the WhatsApp transport."""

    @abstractmethod
    async def send_message(self, to: str, body: str) -> SendResult:
        """Send a text message. Provider rejections come back as SendResult(success=False)."""
        pass

    @abstractmethod
    async def fetch_media(self, url: str) -> MediaPayload:
        """Download an inbound attachment. Raises on transport or HTTP errors."""
        pass

    @abstractmethod
    async def fetch_account(self) -> dict:
        """Return account details; used to verify credentials."""
        pass
