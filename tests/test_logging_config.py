import json
import logging
import uuid

import pytest

from gateway.logging_config import ConsoleFormatter, JSONFormatter, LoggerAdapter, get_logger, mask_phone


def _record(message="hello", context=None):
    record = logging.LogRecord("whatsapp_gateway.test", logging.INFO, __file__, 1, message, None, None)
    if context is not None:
        record.context = context
    return record


class TestMaskPhone:
    @pytest.mark.parametrize(
        "address,expected",
        [
            ("whatsapp:+971501234567", "whatsapp:+9715*****567"),
            ("+971501234567", "+9715*****567"),
            ("971501234567", "9715*****567"),
            ("12345", "*****"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_masks_middle_digits(self, address, expected):
        assert mask_phone(address) == expected


class TestJSONFormatter:
    def test_includes_service_and_context(self):
        line = JSONFormatter().format(_record(context={"session_id": "s1", "text": "مرحبا"}))
        data = json.loads(line)
        assert data["service"] == "whatsapp-gateway"
        assert data["level"] == "INFO"
        assert data["message"] == "hello"
        assert data["context"] == {"session_id": "s1", "text": "مرحبا"}
        assert "مرحبا" in line

    def test_non_serializable_context_is_stringified(self):
        session_id = uuid.uuid4()
        data = json.loads(JSONFormatter().format(_record(context={"session_id": session_id})))
        assert data["context"]["session_id"] == str(session_id)


def test_console_formatter_appends_context():
    line = ConsoleFormatter().format(_record(context={"sent": 2}))
    assert line.endswith('hello {"sent": 2}')


def test_adapter_merges_context():
    adapter = LoggerAdapter(get_logger("test"), {"session_id": "s1"})
    msg, kwargs = adapter.process("hi", {"context": {"step": "extract"}})
    assert msg == "hi"
    assert kwargs["extra"] == {"context": {"session_id": "s1", "step": "extract"}}
