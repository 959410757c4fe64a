from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from gateway.logging_config import get_logger
from gateway.models import WhatsAppMessage
from gateway.services.channel.base import SendResult
from gateway.services.state_machine import DeliveryStatus, can_advance_delivery, parse_delivery_status

logger = get_logger("message_service")

INBOUND = "inbound"
OUTBOUND = "outbound"


def save_message(
    db: Session,
    session_id: UUID,
    direction: str,
    content: str,
    status: str,
    message_type: str = "text",
    media_url: Optional[str] = None,
    media_content_type: Optional[str] = None,
    template_name: Optional[str] = None,
    twilio_sid: Optional[str] = None,
    error_code: Optional[str] = None,
    error_message: Optional[str] = None,
) -> WhatsAppMessage:
    """Save message to database."""
    message = WhatsAppMessage(
        session_id=session_id,
        direction=direction,
        message_type=message_type,
        content=content or "",
        media_url=media_url,
        media_content_type=media_content_type,
        template_name=template_name,
        twilio_sid=twilio_sid,
        status=status,
        error_code=error_code,
        error_message=error_message,
        created_at=datetime.now(timezone.utc),
    )
    db.add(message)
    db.commit()
    return message


def log_message(
    db: Session, session_id: UUID, direction: str, content: str, status: str, **fields
) -> Optional[WhatsAppMessage]:
    """save_message that never raises; a failed write is logged and returns None."""
    try:
        return save_message(db, session_id, direction, content, status, **fields)
    except Exception as e:
        db.rollback()
        logger.error(
            f"Failed to log {direction} message: {e}",
            extra={"context": {"session_id": str(session_id), "twilio_sid": fields.get("twilio_sid")}},
        )
        return None


def log_send_result(
    db: Session,
    session_id: UUID,
    content: str,
    result: SendResult,
    message_type: str = "text",
    template_name: Optional[str] = None,
) -> Optional[WhatsAppMessage]:
    """Record an outbound provider attempt, successful or not."""
    if result.success:
        status = result.status or DeliveryStatus.QUEUED.value
    else:
        status = DeliveryStatus.FAILED.value
    return log_message(
        db,
        session_id,
        OUTBOUND,
        content,
        status,
        message_type=message_type,
        template_name=template_name,
        twilio_sid=result.message_sid,
        error_code=result.error_code,
        error_message=result.error,
    )


def find_inbound_by_sid(db: Session, twilio_sid: Optional[str]) -> Optional[WhatsAppMessage]:
    if not twilio_sid:
        return None
    return (
        db.query(WhatsAppMessage)
        .filter(WhatsAppMessage.twilio_sid == twilio_sid, WhatsAppMessage.direction == INBOUND)
        .first()
    )


def update_delivery_status(
    db: Session,
    twilio_sid: str,
    status: str,
    error_code: Optional[str] = None,
    error_message: Optional[str] = None,
) -> bool:
    """Apply a provider status callback. Returns True only when a row changed.

    Unknown sids, unknown statuses and backwards moves are no-ops, so retried
    callbacks are harmless.
    """
    new_status = parse_delivery_status(status)
    if new_status is None:
        logger.warning(f"Ignoring unknown delivery status: {status}", extra={"context": {"twilio_sid": twilio_sid}})
        return False

    try:
        message = (
            db.query(WhatsAppMessage)
            .filter(WhatsAppMessage.twilio_sid == twilio_sid, WhatsAppMessage.direction == OUTBOUND)
            .first()
        )
        if not message:
            logger.info("Status callback for unknown message", extra={"context": {"twilio_sid": twilio_sid}})
            return False

        if not can_advance_delivery(message.status, new_status):
            logger.debug(f"Stale status {new_status.value} for {twilio_sid} (current {message.status})")
            return False

        message.status = new_status.value
        if error_code:
            message.error_code = error_code
        if error_message:
            message.error_message = error_message
        message.updated_at = datetime.now(timezone.utc)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to update delivery status: {e}", extra={"context": {"twilio_sid": twilio_sid}})
        return False


def list_messages(db: Session, session_id: UUID, limit: int = 50, offset: int = 0) -> list[WhatsAppMessage]:
    """Messages of a session, newest first."""
    return (
        db.query(WhatsAppMessage)
        .filter(WhatsAppMessage.session_id == session_id)
        .order_by(WhatsAppMessage.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
