from gateway.services.language_service import Locale, coerce_locale, detect_language


class TestDetectLanguage:
    def test_english_text(self):
        assert detect_language("hello there") == Locale.EN

    def test_empty_text_defaults_to_english(self):
        assert detect_language("") == Locale.EN
        assert detect_language(None) == Locale.EN

    def test_arabic_text(self):
        assert detect_language("مرحبا") == Locale.AR
        assert detect_language("أريد مراجعة عقد الإيجار") == Locale.AR

    def test_urdu_markers_win_over_arabic_script(self):
        assert detect_language("السلام علیکم، مجھے مدد چاہیے") == Locale.UR
        assert detect_language("ہیلو") == Locale.UR

    def test_mixed_latin_and_arabic(self):
        assert detect_language("contract عقد") == Locale.AR

    def test_deterministic(self):
        text = "پاسپورٹ"
        assert {detect_language(text) for _ in range(5)} == {Locale.UR}


class TestCoerceLocale:
    def test_known_codes(self):
        assert coerce_locale("ar") == Locale.AR
        assert coerce_locale(" UR ") == Locale.UR

    def test_unknown_falls_back_to_english(self):
        assert coerce_locale("fr") == Locale.EN
        assert coerce_locale(None) == Locale.EN
