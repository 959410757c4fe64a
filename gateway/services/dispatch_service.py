import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from gateway.logging_config import get_logger, mask_phone
from gateway.services.channel.base import ChannelProvider, SendResult
from gateway.services.channel.twilio_provider import format_phone_for_whatsapp, is_valid_phone_number
from gateway.services.language_service import DEFAULT_LOCALE, Locale
from gateway.services.result import Result

logger = get_logger("dispatch_service")


class FixedIntervalScheduler:
    """Spaces calls to acquire() at least `interval` seconds apart.

    The first acquire() returns immediately. Clock and sleep are injectable so
    tests can drive it with a virtual clock.
    """

    def __init__(
        self,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.interval = max(interval, 0.0)
        self.clock = clock
        self.sleep = sleep
        self._last: Optional[float] = None

    async def acquire(self) -> None:
        now = self.clock()
        if self._last is not None:
            wait = self._last + self.interval - now
            if wait > 0:
                await self.sleep(wait)
                now = self.clock()
        self._last = now


@dataclass
class BulkRecipient:
    phone: str
    name: Optional[str] = None
    locale: Locale = DEFAULT_LOCALE


@dataclass
class BulkOutcome:
    recipient: BulkRecipient
    result: SendResult
    address: Optional[str] = None
    body: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.result.success


@dataclass
class BulkSummary:
    outcomes: list[BulkOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def sent(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failed(self) -> int:
        return self.total - self.sent


BodyResolver = Callable[[BulkRecipient], str]


class OutboundDispatcher:
    """Sends single and bulk messages through a channel provider.

    Never raises for provider or validation failures; every attempt ends in a SendResult.
    Persistence is left to the caller.
    """

    def __init__(
        self,
        channel: ChannelProvider,
        scheduler: FixedIntervalScheduler,
        default_country_code: str = "971",
    ):
        self.channel = channel
        self.scheduler = scheduler
        self.default_country_code = default_country_code

    def prepare_address(self, recipient: str) -> Result[str]:
        if not is_valid_phone_number(recipient):
            return Result.failure(f"Invalid phone number: {recipient}", "invalid_phone")
        return Result.success(format_phone_for_whatsapp(recipient, self.default_country_code))

    async def _deliver(self, address: str, body: str) -> SendResult:
        try:
            return await self.channel.send_message(address, body)
        except Exception as e:
            logger.error(f"Send failed: {e}", extra={"context": {"to": mask_phone(address)}})
            return SendResult(success=False, error=str(e), error_code="transport_error")

    async def send_one(self, recipient: str, body: str) -> SendResult:
        prepared = self.prepare_address(recipient)
        if not prepared.ok:
            return SendResult(success=False, error=prepared.error, error_code=prepared.error_code)
        return await self._deliver(prepared.value, body)

    async def send_bulk(self, recipients: list[BulkRecipient], resolve_body: BodyResolver) -> BulkSummary:
        """Send to each recipient in order, waiting on the scheduler before every network send."""
        summary = BulkSummary()
        for recipient in recipients:
            prepared = self.prepare_address(recipient.phone)
            if not prepared.ok:
                result = SendResult(success=False, error=prepared.error, error_code=prepared.error_code)
                summary.outcomes.append(BulkOutcome(recipient=recipient, result=result))
                continue

            try:
                body = resolve_body(recipient)
            except Exception as e:
                logger.warning(f"Could not build message for {mask_phone(recipient.phone)}: {e}")
                result = SendResult(success=False, error=str(e), error_code="render_error")
                summary.outcomes.append(BulkOutcome(recipient=recipient, result=result, address=prepared.value))
                continue

            await self.scheduler.acquire()
            result = await self._deliver(prepared.value, body)
            summary.outcomes.append(
                BulkOutcome(recipient=recipient, result=result, address=prepared.value, body=body)
            )

        logger.info(
            "Bulk send finished",
            extra={"context": {"total": summary.total, "sent": summary.sent, "failed": summary.failed}},
        )
        return summary
