"""Notification templates for outbound WhatsApp messages.

Bodies live in templates/whatsapp_templates.yaml, keyed by template type and locale.
"""

from __future__ import annotations

import re
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml

from gateway.logging_config import get_logger
from gateway.services.language_service import DEFAULT_LOCALE, Locale, coerce_locale

logger = get_logger("template_service")

_TEMPLATES_PATH = Path(__file__).resolve().parents[1] / "templates" / "whatsapp_templates.yaml"
_PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")
_BLANK_RUNS = re.compile(r"\n{3,}")

OTP_EXPIRES_IN = "10 minutes"

# Fields a bulk recipient's own name replaces, with the value used when neither is given.
RECIPIENT_NAME_FIELDS = {
    "recipientName": "Customer",
    "signerName": "Signer",
    "clientName": "Client",
    "userName": "User",
}


class TemplateKey(str, Enum):
    SIGNATURE_REQUEST = "signature_request"
    SIGNATURE_REMINDER = "signature_reminder"
    SIGNATURE_COMPLETED = "signature_completed"
    DOCUMENT_SHARED = "document_shared"
    DOCUMENT_APPROVED = "document_approved"
    DOCUMENT_REJECTED = "document_rejected"
    PAYMENT_REMINDER = "payment_reminder"
    WELCOME = "welcome"
    OTP_VERIFICATION = "otp_verification"
    CASE_UPDATE = "case_update"
    CONSULTATION_SCHEDULED = "consultation_scheduled"
    CONSULTATION_REMINDER = "consultation_reminder"


class TemplateNotFoundError(ValueError):
    pass


@lru_cache(maxsize=4)
def _load_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return data if isinstance(data, dict) else {}


def load_templates() -> dict:
    return _load_yaml(_TEMPLATES_PATH)


def parse_template_key(value: str) -> TemplateKey:
    try:
        return TemplateKey(value)
    except ValueError:
        raise TemplateNotFoundError(f"Unknown template type: {value}")


def select_template_body(key: TemplateKey, locale: Optional[Locale]) -> str:
    """Pick the body for locale, falling back to English."""
    bodies = load_templates().get(key.value)
    if not isinstance(bodies, dict):
        raise TemplateNotFoundError(f"Template not configured: {key.value}")

    locale = locale or DEFAULT_LOCALE
    body = bodies.get(locale.value) or bodies.get(DEFAULT_LOCALE.value)
    if not body:
        raise TemplateNotFoundError(f"Template has no {DEFAULT_LOCALE.value} body: {key.value}")
    if locale.value not in bodies:
        logger.info(f"Template {key.value} has no {locale.value} body, using {DEFAULT_LOCALE.value}")
    return body


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _render_line(line: str, data: dict[str, Any]) -> Optional[str]:
    names = _PLACEHOLDER.findall(line)
    if any(_is_blank(data.get(name)) for name in names):
        return None
    return _PLACEHOLDER.sub(lambda match: str(data[match.group(1)]), line)


def render_body(body: str, data: dict[str, Any]) -> str:
    """Substitute {placeholders}; lines with a missing or empty placeholder are dropped."""
    lines = [rendered for line in body.splitlines() if (rendered := _render_line(line, data)) is not None]
    text = "\n".join(lines)
    return _BLANK_RUNS.sub("\n\n", text).strip()


def render_template(key: TemplateKey | str, locale: Optional[Locale | str], data: Optional[dict[str, Any]] = None) -> str:
    if not isinstance(key, TemplateKey):
        key = parse_template_key(key)
    if locale is not None and not isinstance(locale, Locale):
        locale = coerce_locale(locale)
    return render_body(select_template_body(key, locale), data or {})


def customize_for_recipient(data: Optional[dict[str, Any]], name: Optional[str]) -> dict[str, Any]:
    """Per-recipient copy of bulk template data with the recipient's name filled in."""
    customized = dict(data or {})
    for field, fallback in RECIPIENT_NAME_FIELDS.items():
        if name:
            customized[field] = name
        elif _is_blank(customized.get(field)):
            customized[field] = fallback
    return customized


def otp_template_data(code: str) -> dict[str, str]:
    return {"code": code, "expiresIn": OTP_EXPIRES_IN}
