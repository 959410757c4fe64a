import asyncio
from unittest.mock import AsyncMock, MagicMock, Mock, patch

from gateway.services.alert_service import alert_critical, alert_warning, format_alert, send_alert


def _telegram_client(mock_client_class, response=None):
    mock_client = MagicMock()
    mock_client_class.return_value.__aenter__.return_value = mock_client
    mock_client.post = AsyncMock(return_value=response)
    return mock_client


class TestSendAlert:
    @patch("gateway.services.alert_service.ALERT_BOT_TOKEN", None)
    @patch("gateway.services.alert_service.ALERT_CHAT_ID", None)
    def test_returns_false_when_not_configured(self):
        result = asyncio.run(send_alert("ERROR", "Test message"))
        assert result is False

    @patch("gateway.services.alert_service.ALERT_BOT_TOKEN", "test-token")
    @patch("gateway.services.alert_service.ALERT_CHAT_ID", "test-chat")
    @patch("gateway.services.alert_service.httpx.AsyncClient")
    def test_sends_alert_to_telegram(self, mock_client_class):
        mock_client = _telegram_client(mock_client_class, Mock(status_code=200))

        result = asyncio.run(
            send_alert("CRITICAL", "WhatsApp session create failed", {"address": "whatsapp:+9715*****567"})
        )

        assert result is True
        call_args = mock_client.post.call_args
        assert "api.telegram.org/bottest-token" in call_args[0][0]
        json_data = call_args[1]["json"]
        assert json_data["chat_id"] == "test-chat"
        assert "CRITICAL" in json_data["text"]
        assert "address: whatsapp:+9715*****567" in json_data["text"]

    @patch("gateway.services.alert_service.ALERT_BOT_TOKEN", "test-token")
    @patch("gateway.services.alert_service.ALERT_CHAT_ID", "test-chat")
    @patch("gateway.services.alert_service.httpx.AsyncClient")
    def test_returns_false_on_telegram_error(self, mock_client_class):
        _telegram_client(mock_client_class, Mock(status_code=400))

        assert asyncio.run(send_alert("ERROR", "Test message")) is False

    @patch("gateway.services.alert_service.ALERT_BOT_TOKEN", "test-token")
    @patch("gateway.services.alert_service.ALERT_CHAT_ID", "test-chat")
    @patch("gateway.services.alert_service.httpx.AsyncClient")
    def test_returns_false_on_exception(self, mock_client_class):
        mock_client = _telegram_client(mock_client_class)
        mock_client.post.side_effect = Exception("Network error")

        assert asyncio.run(send_alert("ERROR", "Test message")) is False


class TestFormatAlert:
    def test_includes_level_source_and_context(self):
        text = format_alert("WARNING", "Invalid signature", {"path": "/api/whatsapp/webhook/incoming"})
        assert text.startswith("⚠️ WARNING [whatsapp-gateway]")
        assert "Invalid signature" in text
        assert "path: /api/whatsapp/webhook/incoming" in text

    def test_unknown_level_gets_generic_icon(self):
        assert format_alert("DEBUG", "x").startswith("📢 DEBUG")


class TestShortcuts:
    @patch("gateway.services.alert_service.send_alert", new_callable=AsyncMock)
    def test_alert_critical(self, mock_send):
        mock_send.return_value = True
        assert asyncio.run(alert_critical("Critical", {"key": "value"})) is True
        mock_send.assert_awaited_once_with("CRITICAL", "Critical", {"key": "value"})

    @patch("gateway.services.alert_service.send_alert", new_callable=AsyncMock)
    def test_alert_warning(self, mock_send):
        mock_send.return_value = True
        asyncio.run(alert_warning("Warning"))
        mock_send.assert_awaited_once_with("WARNING", "Warning", None)
