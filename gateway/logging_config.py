"""JSON logging for the WhatsApp gateway.

Phone numbers are end-user data: log them through mask_phone().
"""

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any, Optional

SERVICE_NAME = "whatsapp-gateway"

_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine")


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable lines for local runs (LOG_JSON=false)."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-7s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", None)
        if context:
            line = f"{line} {json.dumps(context, ensure_ascii=False, default=str)}"
        return line


def setup_logging(level: str = "INFO", json_output: bool = True) -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else ConsoleFormatter())
    root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"whatsapp_gateway.{name}")


def mask_phone(address: Optional[str]) -> str:
    """whatsapp:+971501234567 -> whatsapp:+9715*****567"""
    if not address:
        return ""
    prefix, _, number = address.rpartition(":")
    digits = re.sub(r"\D", "", number)
    if len(digits) <= 7:
        masked = "*" * len(digits)
    else:
        masked = digits[:4] + "*" * (len(digits) - 7) + digits[-3:]
    plus = "+" if number.startswith("+") else ""
    return f"{prefix}:{plus}{masked}" if prefix else f"{plus}{masked}"


class LoggerAdapter(logging.LoggerAdapter):
    """Adapter that merges its fixed context with a per-call context= kwarg."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        context = kwargs.pop("context", None)
        if context or self.extra:
            combined_context = {**self.extra, **(context or {})}
            kwargs["extra"] = {"context": combined_context}
        return msg, kwargs
