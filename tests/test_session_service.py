from unittest.mock import MagicMock, patch

import pytest

from gateway.models import WhatsAppSession
from gateway.services.language_service import Locale
from gateway.services.message_service import INBOUND, save_message
from gateway.services.session_service import (
    SessionCreateError,
    find_session,
    get_or_create_session,
    list_sessions,
    touch_session,
)

ADDRESS = "whatsapp:+971501234567"


class TestGetOrCreateSession:
    def test_creates_new_session_with_detected_locale(self, db_session):
        session, is_new = get_or_create_session(db_session, ADDRESS, initial_text="مرحبا")
        assert is_new is True
        assert session.phone == ADDRESS
        assert session.state == "idle"
        assert session.detected_language == "ar"
        assert session.context == {}

    def test_existing_session_is_returned(self, db_session):
        first, _ = get_or_create_session(db_session, ADDRESS, initial_text="hello")
        second, is_new = get_or_create_session(db_session, ADDRESS, initial_text="مرحبا")
        assert is_new is False
        assert second.id == first.id

    def test_locale_is_not_overwritten_by_later_messages(self, db_session):
        get_or_create_session(db_session, ADDRESS, initial_text="hello")
        session, _ = get_or_create_session(db_session, ADDRESS, initial_text="السلام علیکم")
        assert session.detected_language == "en"

    def test_explicit_locale(self, db_session):
        session, _ = get_or_create_session(db_session, ADDRESS, locale=Locale.UR)
        assert session.detected_language == "ur"

    def test_concurrent_first_contact_creates_one_session(self, db_session):
        existing, _ = get_or_create_session(db_session, ADDRESS, initial_text="hi")

        # The other request inserted the row between our lookup and our insert.
        with patch(
            "gateway.services.session_service.find_session",
            side_effect=[None, existing],
        ):
            session, is_new = get_or_create_session(db_session, ADDRESS, initial_text="hi")

        assert is_new is False
        assert session.id == existing.id
        assert db_session.query(WhatsAppSession).count() == 1

    def test_write_failure_raises(self):
        db = MagicMock()
        db.query.return_value.filter.return_value.first.return_value = None
        db.execute.side_effect = Exception("connection refused")

        with pytest.raises(SessionCreateError):
            get_or_create_session(db, ADDRESS, initial_text="hi")

        db.rollback.assert_called_once()


class TestTouchSession:
    def test_updates_activity_and_fields(self, db_session):
        session, _ = get_or_create_session(db_session, ADDRESS)
        assert touch_session(db_session, session, state="active", display_name="Aisha") is True

        reloaded = find_session(db_session, ADDRESS)
        assert reloaded.state == "active"
        assert reloaded.display_name == "Aisha"
        assert reloaded.last_message_at is not None

    def test_failure_is_swallowed(self):
        db = MagicMock()
        db.commit.side_effect = Exception("deadlock")
        session = WhatsAppSession(phone=ADDRESS)

        assert touch_session(db, session, state="active") is False
        db.rollback.assert_called_once()


class TestListSessions:
    def test_includes_message_counts(self, db_session):
        busy, _ = get_or_create_session(db_session, ADDRESS)
        quiet, _ = get_or_create_session(db_session, "whatsapp:+971509999999")
        save_message(db_session, busy.id, INBOUND, "hi", "received")
        save_message(db_session, busy.id, INBOUND, "help", "received")
        touch_session(db_session, busy)

        rows = list_sessions(db_session)

        assert [(session.phone, count) for session, count in rows] == [
            (ADDRESS, 2),
            ("whatsapp:+971509999999", 0),
        ]

    def test_pagination(self, db_session):
        for index in range(3):
            get_or_create_session(db_session, f"whatsapp:+97150000000{index}")
        assert len(list_sessions(db_session, limit=2)) == 2
        assert len(list_sessions(db_session, limit=2, offset=2)) == 1
