import re
from enum import Enum
from typing import Optional


class Locale(str, Enum):
    EN = "en"
    AR = "ar"
    UR = "ur"


DEFAULT_LOCALE = Locale.EN

# Letters used by Urdu but not by standard Arabic: ٹ پ چ ڈ ڑ ں ھ ہ ے
_URDU_SPECIFIC = re.compile("[\u0679\u067E\u0686\u0688\u0691\u06BA\u06BE\u06C1\u06D2]")
_ARABIC_SCRIPT = re.compile("[\u0600-\u06FF]")


def detect_language(text: Optional[str]) -> Locale:
    """Classify text by script: Urdu markers first, then Arabic script, else English."""
    if not text:
        return DEFAULT_LOCALE
    if _URDU_SPECIFIC.search(text):
        return Locale.UR
    if _ARABIC_SCRIPT.search(text):
        return Locale.AR
    return DEFAULT_LOCALE


def coerce_locale(value: Optional[str]) -> Locale:
    """Map a stored language code to a supported locale, falling back to English."""
    try:
        return Locale((value or "").strip().lower())
    except ValueError:
        return DEFAULT_LOCALE
