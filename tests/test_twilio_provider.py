import asyncio
from unittest.mock import AsyncMock, MagicMock, Mock, patch

import pytest

from gateway.services.channel.twilio_provider import (
    TwilioProvider,
    compute_twilio_signature,
    format_phone_for_whatsapp,
    is_valid_phone_number,
    verify_twilio_signature,
)


class TestFormatPhone:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("+971 50 123 4567", "whatsapp:+971501234567"),
            ("0501234567", "whatsapp:+971501234567"),
            ("00971501234567", "whatsapp:+971501234567"),
            ("501234567", "whatsapp:+971501234567"),
            ("+447700900123", "whatsapp:+447700900123"),
            ("whatsapp:+971501234567", "whatsapp:+971501234567"),
        ],
    )
    def test_formats(self, raw, expected):
        assert format_phone_for_whatsapp(raw) == expected

    def test_custom_country_code(self):
        assert format_phone_for_whatsapp("0551234567", default_country_code="966") == "whatsapp:+966551234567"


class TestValidPhone:
    def test_valid_lengths(self):
        assert is_valid_phone_number("+971 50 123 4567") is True
        assert is_valid_phone_number("12345678") is True

    def test_invalid_lengths(self):
        assert is_valid_phone_number("1234567") is False
        assert is_valid_phone_number("1" * 16) is False
        assert is_valid_phone_number("abc") is False
        assert is_valid_phone_number(None) is False


class TestSignature:
    params = {"From": "whatsapp:+971501234567", "Body": "hi", "MessageSid": "SM1"}
    url = "https://gw.example.com/api/whatsapp/webhook/incoming"

    def test_roundtrip(self):
        signature = compute_twilio_signature("secret", self.url, self.params)
        assert verify_twilio_signature(signature, self.url, self.params, "secret") is True

    def test_parameter_order_does_not_matter(self):
        reordered = dict(reversed(list(self.params.items())))
        assert compute_twilio_signature("secret", self.url, reordered) == compute_twilio_signature(
            "secret", self.url, self.params
        )

    def test_tampered_body_fails(self):
        signature = compute_twilio_signature("secret", self.url, self.params)
        tampered = {**self.params, "Body": "hello"}
        assert verify_twilio_signature(signature, self.url, tampered, "secret") is False

    def test_missing_signature_or_token_fails(self):
        assert verify_twilio_signature(None, self.url, self.params, "secret") is False
        assert verify_twilio_signature("abc", self.url, self.params, None) is False


def _provider():
    return TwilioProvider("AC123", "token", "+14155238886")


def _mock_async_client(mock_client_class, response, method="post"):
    mock_client = MagicMock()
    mock_client_class.return_value.__aenter__.return_value = mock_client
    setattr(mock_client, method, AsyncMock(return_value=response))
    return mock_client


class TestTwilioProvider:
    @patch("gateway.services.channel.twilio_provider.httpx.AsyncClient")
    def test_send_message_success(self, mock_client_class):
        response = Mock(status_code=201)
        response.json.return_value = {"sid": "SM123", "status": "queued"}
        mock_client = _mock_async_client(mock_client_class, response)

        result = asyncio.run(_provider().send_message("whatsapp:+971501234567", "Hello"))

        assert result.success is True
        assert result.message_sid == "SM123"
        call_args = mock_client.post.call_args
        assert call_args[0][0].endswith("/Accounts/AC123/Messages.json")
        assert call_args[1]["auth"] == ("AC123", "token")
        assert call_args[1]["data"] == {
            "To": "whatsapp:+971501234567",
            "From": "whatsapp:+14155238886",
            "Body": "Hello",
        }

    @patch("gateway.services.channel.twilio_provider.httpx.AsyncClient")
    def test_send_message_rejected(self, mock_client_class):
        response = Mock(status_code=400)
        response.json.return_value = {"code": 21211, "message": "Invalid 'To' Phone Number"}
        _mock_async_client(mock_client_class, response)

        result = asyncio.run(_provider().send_message("whatsapp:+1", "Hello"))

        assert result.success is False
        assert result.error == "Invalid 'To' Phone Number"
        assert result.error_code == "21211"

    @patch("gateway.services.channel.twilio_provider.httpx.AsyncClient")
    def test_fetch_media(self, mock_client_class):
        response = Mock(status_code=200, content=b"%PDF", headers={"content-type": "application/pdf"})
        mock_client = _mock_async_client(mock_client_class, response, method="get")

        media = asyncio.run(_provider().fetch_media("https://api.twilio.com/media/ME1"))

        assert media.data == b"%PDF"
        assert media.content_type == "application/pdf"
        assert mock_client.get.call_args[1]["auth"] == ("AC123", "token")

    @patch("gateway.services.channel.twilio_provider.httpx.AsyncClient")
    def test_fetch_media_error_raises(self, mock_client_class):
        _mock_async_client(mock_client_class, Mock(status_code=404), method="get")

        with pytest.raises(Exception, match="404"):
            asyncio.run(_provider().fetch_media("https://api.twilio.com/media/ME1"))

    @patch("gateway.services.channel.twilio_provider.httpx.AsyncClient")
    def test_fetch_media_too_large_raises(self, mock_client_class):
        response = Mock(status_code=200, content=b"x" * 11, headers={"content-type": "image/png"})
        _mock_async_client(mock_client_class, response, method="get")
        provider = TwilioProvider("AC123", "token", "whatsapp:+14155238886", media_max_bytes=10)

        with pytest.raises(Exception, match="too large"):
            asyncio.run(provider.fetch_media("https://api.twilio.com/media/ME1"))

    @patch("gateway.services.channel.twilio_provider.httpx.AsyncClient")
    def test_fetch_account(self, mock_client_class):
        response = Mock(status_code=200)
        response.json.return_value = {"sid": "AC123", "friendly_name": "LegalDocs", "status": "active", "type": "Full"}
        _mock_async_client(mock_client_class, response, method="get")

        account = asyncio.run(_provider().fetch_account())

        assert account == {"sid": "AC123", "friendly_name": "LegalDocs", "status": "active", "type": "Full"}
