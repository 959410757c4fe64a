from datetime import datetime, timezone
from unittest.mock import MagicMock

from gateway.models import UsageRecord
from gateway.services.usage_service import get_usage, record_usage, usage_period

OCTOBER = datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc)
NOVEMBER = datetime(2026, 11, 1, 0, 5, tzinfo=timezone.utc)


def test_usage_period():
    assert usage_period(OCTOBER) == "2026-10"


def test_increments_current_month(db_session):
    assert record_usage(db_session, 1, now=OCTOBER) is True
    assert record_usage(db_session, 3, now=OCTOBER) is True

    assert get_usage(db_session, "2026-10") == 4
    assert db_session.query(UsageRecord).count() == 1


def test_new_month_gets_new_row(db_session):
    record_usage(db_session, 2, now=OCTOBER)
    record_usage(db_session, 5, now=NOVEMBER)

    assert get_usage(db_session, "2026-10") == 2
    assert get_usage(db_session, "2026-11") == 5


def test_zero_count_is_skipped(db_session):
    assert record_usage(db_session, 0, now=OCTOBER) is False
    assert db_session.query(UsageRecord).count() == 0


def test_failure_is_swallowed():
    db = MagicMock()
    db.get_bind.return_value.dialect.name = "sqlite"
    db.execute.side_effect = Exception("disk I/O error")

    assert record_usage(db, 1, now=OCTOBER) is False
    db.rollback.assert_called_once()
