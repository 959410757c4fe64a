"""FastAPI dependencies that build the gateway's collaborators from settings.

Providers are constructed per request; tests swap them via app.dependency_overrides.
"""

from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from gateway.config import settings
from gateway.database import get_db
from gateway.services.analysis_service import AnalysisOrchestrator
from gateway.services.channel.base import ChannelProvider
from gateway.services.channel.twilio_provider import TwilioProvider
from gateway.services.command_router import CommandRouter
from gateway.services.dispatch_service import FixedIntervalScheduler, OutboundDispatcher
from gateway.services.llm.base import DocumentAIProvider
from gateway.services.llm.openrouter_provider import OpenRouterProvider

_command_router = CommandRouter()


def get_channel_provider() -> Optional[ChannelProvider]:
    """Twilio provider, or None when WhatsApp credentials are missing."""
    if not settings.whatsapp_configured:
        return None
    return TwilioProvider(
        settings.twilio_account_sid,
        settings.twilio_auth_token,
        settings.twilio_whatsapp_from,
        api_base=settings.twilio_api_base,
        media_timeout_seconds=settings.media_timeout_seconds,
        media_max_bytes=settings.media_max_bytes,
    )


def get_ai_provider() -> Optional[DocumentAIProvider]:
    """OpenRouter provider, or None when no API key is set."""
    if not settings.ai_configured:
        return None
    return OpenRouterProvider(
        settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        extraction_model=settings.ai_extraction_model,
        analysis_model=settings.ai_analysis_model,
        timeout_seconds=settings.ai_timeout_seconds,
    )


def get_scheduler() -> FixedIntervalScheduler:
    return FixedIntervalScheduler(settings.bulk_send_interval_seconds)


def get_dispatcher(
    channel: Optional[ChannelProvider] = Depends(get_channel_provider),
    scheduler: FixedIntervalScheduler = Depends(get_scheduler),
) -> Optional[OutboundDispatcher]:
    if channel is None:
        return None
    return OutboundDispatcher(channel, scheduler, default_country_code=settings.default_country_code)


def get_orchestrator(
    db: Session = Depends(get_db),
    ai_provider: Optional[DocumentAIProvider] = Depends(get_ai_provider),
    channel: Optional[ChannelProvider] = Depends(get_channel_provider),
) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(db, ai_provider, channel, jurisdiction=settings.default_jurisdiction)


def get_command_router() -> CommandRouter:
    return _command_router
