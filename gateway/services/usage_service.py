import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from gateway.database import dialect_insert
from gateway.logging_config import get_logger
from gateway.models import UsageRecord

logger = get_logger("usage_service")


def usage_period(now: Optional[datetime] = None) -> str:
    return (now or datetime.now(timezone.utc)).strftime("%Y-%m")


def record_usage(db: Session, count: int, now: Optional[datetime] = None) -> bool:
    """Add `count` sent WhatsApp messages to the current month. Best effort."""
    if count <= 0:
        return False

    now = now or datetime.now(timezone.utc)
    period = usage_period(now)
    try:
        stmt = dialect_insert(db, UsageRecord).values(
            id=uuid.uuid4(),
            period=period,
            whatsapp_messages=count,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["period"],
            set_={"whatsapp_messages": UsageRecord.whatsapp_messages + count, "updated_at": now},
        )
        db.execute(stmt)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        logger.warning(f"Failed to record usage: {e}", extra={"context": {"period": period, "count": count}})
        return False


def get_usage(db: Session, period: Optional[str] = None) -> int:
    record = db.query(UsageRecord).filter(UsageRecord.period == (period or usage_period())).first()
    return record.whatsapp_messages if record else 0
