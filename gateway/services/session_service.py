import uuid
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from gateway.database import dialect_insert
from gateway.logging_config import get_logger, mask_phone
from gateway.models import WhatsAppMessage, WhatsAppSession
from gateway.services.language_service import Locale, detect_language
from gateway.services.state_machine import SessionState

logger = get_logger("session_service")


class SessionCreateError(Exception):
    pass


def find_session(db: Session, address: str) -> Optional[WhatsAppSession]:
    return db.query(WhatsAppSession).filter(WhatsAppSession.phone == address).first()


def get_session(db: Session, session_id: UUID) -> Optional[WhatsAppSession]:
    return db.query(WhatsAppSession).filter(WhatsAppSession.id == session_id).first()


def get_or_create_session(
    db: Session,
    address: str,
    *,
    initial_text: str = "",
    locale: Optional[Locale] = None,
) -> tuple[WhatsAppSession, bool]:
    """Return (session, is_new) for a channel address.

    Concurrent first contact is resolved by INSERT ... ON CONFLICT (phone) DO NOTHING:
    only the insert that lands reports is_new, every caller reads back the same row.
    The locale is detected here, once, from the first inbound text unless given.
    Raises SessionCreateError if the row cannot be written; callers raise the alert.
    """
    session = find_session(db, address)
    if session:
        return session, False

    language = (locale or detect_language(initial_text)).value
    now = datetime.now(timezone.utc)
    try:
        stmt = (
            dialect_insert(db, WhatsAppSession)
            .values(
                id=uuid.uuid4(),
                phone=address,
                state=SessionState.IDLE.value,
                detected_language=language,
                context={},
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(index_elements=["phone"])
        )
        result = db.execute(stmt)
        db.commit()
        created = result.rowcount > 0
        session = find_session(db, address)
    except Exception as e:
        db.rollback()
        logger.exception("Failed to create session", extra={"context": {"address": mask_phone(address)}})
        raise SessionCreateError(str(e)) from e

    if session is None:
        raise SessionCreateError(f"Session not found after insert: {mask_phone(address)}")

    if created:
        logger.info(
            "Session created",
            extra={"context": {"session_id": str(session.id), "language": language}},
        )
    return session, created


def touch_session(db: Session, session: WhatsAppSession, **updates) -> bool:
    """Bump last activity and apply updates. Failures are logged and swallowed."""
    now = datetime.now(timezone.utc)
    try:
        for field, value in updates.items():
            setattr(session, field, value)
        session.last_message_at = now
        session.updated_at = now
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        logger.warning(f"Failed to touch session: {e}", extra={"context": {"session_id": str(session.id)}})
        return False


def list_sessions(db: Session, limit: int = 50, offset: int = 0) -> list[tuple[WhatsAppSession, int]]:
    """Sessions by most recent activity, each with its message count."""
    counts = (
        db.query(WhatsAppMessage.session_id, func.count(WhatsAppMessage.id).label("message_count"))
        .group_by(WhatsAppMessage.session_id)
        .subquery()
    )
    rows = (
        db.query(WhatsAppSession, func.coalesce(counts.c.message_count, 0))
        .outerjoin(counts, counts.c.session_id == WhatsAppSession.id)
        .order_by(func.coalesce(WhatsAppSession.last_message_at, WhatsAppSession.created_at).desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return [(session, int(count)) for session, count in rows]
