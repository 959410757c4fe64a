from gateway.services.language_service import Locale
from gateway.services.reply_catalog import CATALOG, MessageKey, get_reply


def test_every_key_has_every_locale():
    for key in MessageKey:
        assert set(CATALOG[key]) == set(Locale), key


def test_missing_locale_falls_back_to_english(monkeypatch):
    monkeypatch.setitem(CATALOG, MessageKey.SUPPORT, {Locale.EN: "English only"})
    assert get_reply(MessageKey.SUPPORT, Locale.UR) == "English only"


def test_none_locale_uses_english():
    assert get_reply(MessageKey.MENU, None) == CATALOG[MessageKey.MENU][Locale.EN]


def test_values_are_formatted():
    assert get_reply(MessageKey.BAND_HIGH, Locale.EN) == "HIGH"
    line = get_reply(MessageKey.REPORT_RISK, Locale.EN, icon="🔴", band="HIGH", score=72)
    assert line == "🔴 Risk level: *HIGH* (72/100)"
