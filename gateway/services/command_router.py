from dataclasses import dataclass
from typing import Callable, Optional

from gateway.services.language_service import Locale, coerce_locale
from gateway.services.reply_catalog import MessageKey, get_reply


@dataclass(frozen=True)
class RouteContext:
    locale: Locale
    display_name: Optional[str] = None


Handler = Callable[[RouteContext], str]


@dataclass(frozen=True)
class Command:
    name: str
    tokens: dict[Locale, tuple[str, ...]]
    handler: Handler

    def all_tokens(self) -> tuple[str, ...]:
        return tuple(token for locale_tokens in self.tokens.values() for token in locale_tokens)


def normalize_command_text(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def matches_token(normalized: str, token: str) -> bool:
    """Exact token or token followed by a space; "helpme" does not match "help"."""
    return normalized == token or normalized.startswith(token + " ")


def _greeting(ctx: RouteContext) -> str:
    name = f" {ctx.display_name}" if ctx.display_name else ""
    return get_reply(MessageKey.GREETING, ctx.locale, name=name)


def _static(key: MessageKey) -> Handler:
    return lambda ctx: get_reply(key, ctx.locale)


DEFAULT_COMMANDS: tuple[Command, ...] = (
    Command(
        name="greeting",
        tokens={
            Locale.EN: ("hi", "hello", "hey"),
            Locale.AR: ("مرحبا", "مرحباً", "السلام عليكم", "اهلا"),
            Locale.UR: ("السلام علیکم", "ہیلو"),
        },
        handler=_greeting,
    ),
    Command(
        name="help",
        tokens={Locale.EN: ("help", "menu"), Locale.AR: ("مساعدة",), Locale.UR: ("مدد",)},
        handler=_static(MessageKey.HELP),
    ),
    Command(
        name="status",
        tokens={Locale.EN: ("status",), Locale.AR: ("حالة",), Locale.UR: ("حیثیت",)},
        handler=_static(MessageKey.STATUS),
    ),
    Command(
        name="documents",
        tokens={Locale.EN: ("documents", "document"), Locale.AR: ("مستندات", "مستند"), Locale.UR: ("دستاویزات",)},
        handler=_static(MessageKey.DOCUMENTS),
    ),
    Command(
        name="support",
        tokens={Locale.EN: ("support", "agent"), Locale.AR: ("دعم",), Locale.UR: ("سپورٹ",)},
        handler=_static(MessageKey.SUPPORT),
    ),
)


class CommandRouter:
    """Maps inbound text to a reply. Tokens match in any locale; replies use the session locale."""

    def __init__(self, commands: tuple[Command, ...] = DEFAULT_COMMANDS):
        self.commands = commands

    def match(self, text: Optional[str]) -> Optional[Command]:
        normalized = normalize_command_text(text)
        if not normalized:
            return None
        for command in self.commands:
            if any(matches_token(normalized, token) for token in command.all_tokens()):
                return command
        return None

    def route(self, text: Optional[str], session, display_name: Optional[str] = None) -> str:
        ctx = RouteContext(
            locale=coerce_locale(getattr(session, "detected_language", None)),
            display_name=display_name or getattr(session, "display_name", None),
        )
        command = self.match(text)
        if command is None:
            return get_reply(MessageKey.MENU, ctx.locale)
        return command.handler(ctx)
