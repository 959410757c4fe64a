from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from gateway.config import settings
from gateway.database import get_db
from gateway.dependencies import get_channel_provider, get_dispatcher
from gateway.logging_config import get_logger, mask_phone
from gateway.models import WhatsAppSession
from gateway.schemas.whatsapp import (
    BulkResultItem,
    BulkSendRequest,
    BulkSendResponse,
    MessageListResponse,
    MessageOut,
    SendMessageRequest,
    SendOtpRequest,
    SendResponse,
    SendTemplateRequest,
    SessionListResponse,
    SessionSummary,
    StatusResponse,
)
from gateway.services.alert_service import alert_critical
from gateway.services.channel.base import ChannelProvider
from gateway.services.dispatch_service import BulkRecipient, OutboundDispatcher
from gateway.services.language_service import Locale
from gateway.services.message_service import list_messages, log_send_result
from gateway.services.session_service import SessionCreateError, get_or_create_session, get_session, list_sessions
from gateway.services.template_service import (
    TemplateKey,
    TemplateNotFoundError,
    customize_for_recipient,
    otp_template_data,
    render_template,
)
from gateway.services.usage_service import record_usage

logger = get_logger("whatsapp_api")

router = APIRouter(prefix="/api/whatsapp", tags=["whatsapp"])

NOT_CONFIGURED = "WhatsApp is not configured"


async def _require_dispatcher(dispatcher: Optional[OutboundDispatcher]) -> OutboundDispatcher:
    if dispatcher is None:
        await alert_critical("WhatsApp send attempted without provider credentials")
        raise HTTPException(status_code=503, detail=NOT_CONFIGURED)
    return dispatcher


async def _session_for(db: Session, address: str, locale: Locale) -> Optional[WhatsAppSession]:
    try:
        session, _ = get_or_create_session(db, address, locale=locale)
        return session
    except SessionCreateError as e:
        logger.error(f"Outbound message not logged, no session: {e}", extra={"context": {"to": mask_phone(address)}})
        await alert_critical("WhatsApp session create failed", {"address": mask_phone(address), "error": str(e)})
        return None


def _render(template_type: TemplateKey, locale: Locale, data: dict) -> str:
    try:
        return render_template(template_type, locale, data)
    except TemplateNotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))


async def _send_and_log(
    db: Session,
    dispatcher: OutboundDispatcher,
    to: str,
    body: str,
    locale: Locale,
    message_type: str = "text",
    template_name: Optional[str] = None,
) -> SendResponse:
    prepared = dispatcher.prepare_address(to)
    if not prepared.ok:
        raise HTTPException(status_code=400, detail=prepared.error)

    result = await dispatcher.send_one(to, body)

    session = await _session_for(db, prepared.value, locale)
    if session is not None:
        log_send_result(db, session.id, body, result, message_type=message_type, template_name=template_name)

    if not result.success:
        raise HTTPException(status_code=502, detail=result.error or "Failed to send message")

    record_usage(db, 1)
    return SendResponse(success=True, message_sid=result.message_sid, status=result.status, to=prepared.value)


@router.get("/status", response_model=StatusResponse)
async def get_status():
    """Configuration and feature flags of the WhatsApp integration."""
    configured = settings.whatsapp_configured
    return StatusResponse(
        configured=configured,
        ai_configured=settings.ai_configured,
        provider="twilio",
        features={
            "send_message": configured,
            "send_template": configured,
            "send_bulk": configured,
            "send_otp": configured,
            "webhooks": True,
            "document_analysis": configured and settings.ai_configured,
            "languages": [locale.value for locale in Locale],
        },
    )


@router.post("/send", response_model=SendResponse)
async def send_message(
    request: SendMessageRequest,
    db: Session = Depends(get_db),
    dispatcher: Optional[OutboundDispatcher] = Depends(get_dispatcher),
):
    dispatcher = await _require_dispatcher(dispatcher)
    return await _send_and_log(db, dispatcher, request.to, request.message, request.language)


@router.post("/send-template", response_model=SendResponse)
async def send_template(
    request: SendTemplateRequest,
    db: Session = Depends(get_db),
    dispatcher: Optional[OutboundDispatcher] = Depends(get_dispatcher),
):
    dispatcher = await _require_dispatcher(dispatcher)
    body = _render(request.template_type, request.language, request.data)
    return await _send_and_log(
        db,
        dispatcher,
        request.to,
        body,
        request.language,
        message_type="template",
        template_name=request.template_type.value,
    )


@router.post("/send-bulk", response_model=BulkSendResponse)
async def send_bulk(
    request: BulkSendRequest,
    db: Session = Depends(get_db),
    dispatcher: Optional[OutboundDispatcher] = Depends(get_dispatcher),
):
    """Send one template to many recipients, personalized by name, rate limited."""
    dispatcher = await _require_dispatcher(dispatcher)
    if len(request.recipients) > settings.bulk_max_recipients:
        raise HTTPException(status_code=400, detail=f"At most {settings.bulk_max_recipients} recipients per request")

    recipients = [BulkRecipient(phone=item.phone, name=item.name, locale=item.language) for item in request.recipients]

    def resolve_body(recipient: BulkRecipient) -> str:
        data = customize_for_recipient(request.data, recipient.name)
        return render_template(request.template_type, recipient.locale, data)

    summary = await dispatcher.send_bulk(recipients, resolve_body)

    for outcome in summary.outcomes:
        if outcome.address is None or outcome.body is None:
            continue
        session = await _session_for(db, outcome.address, outcome.recipient.locale)
        if session is not None:
            log_send_result(
                db,
                session.id,
                outcome.body,
                outcome.result,
                message_type="template",
                template_name=request.template_type.value,
            )

    record_usage(db, summary.sent)

    return BulkSendResponse(
        success=summary.sent > 0,
        total=summary.total,
        sent=summary.sent,
        failed=summary.failed,
        results=[
            BulkResultItem(
                phone=outcome.recipient.phone,
                success=outcome.success,
                message_sid=outcome.result.message_sid,
                error=outcome.result.error,
            )
            for outcome in summary.outcomes
        ],
    )


@router.post("/send-otp", response_model=SendResponse)
async def send_otp(
    request: SendOtpRequest,
    db: Session = Depends(get_db),
    dispatcher: Optional[OutboundDispatcher] = Depends(get_dispatcher),
):
    dispatcher = await _require_dispatcher(dispatcher)
    body = _render(TemplateKey.OTP_VERIFICATION, request.language, otp_template_data(request.code))
    return await _send_and_log(
        db,
        dispatcher,
        request.phone,
        body,
        request.language,
        message_type="template",
        template_name=TemplateKey.OTP_VERIFICATION.value,
    )


@router.get("/sessions", response_model=SessionListResponse)
def get_sessions(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    sessions = []
    for session, message_count in list_sessions(db, limit=limit, offset=offset):
        summary = SessionSummary.model_validate(session)
        summary.message_count = message_count
        sessions.append(summary)
    return SessionListResponse(sessions=sessions, limit=limit, offset=offset)


@router.get("/sessions/{session_id}/messages", response_model=MessageListResponse)
def get_session_messages(
    session_id: UUID,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    if get_session(db, session_id) is None:
        return MessageListResponse(messages=[], limit=limit, offset=offset)
    messages = list_messages(db, session_id, limit=limit, offset=offset)
    return MessageListResponse(
        messages=[MessageOut.model_validate(message) for message in messages],
        limit=limit,
        offset=offset,
    )


@router.get("/test")
async def test_connection(channel: Optional[ChannelProvider] = Depends(get_channel_provider)):
    """Verify provider credentials by fetching the account."""
    if channel is None:
        raise HTTPException(status_code=503, detail=NOT_CONFIGURED)
    try:
        account = await channel.fetch_account()
    except Exception as e:
        logger.error(f"WhatsApp connection test failed: {e}")
        raise HTTPException(status_code=502, detail=f"Connection test failed: {e}")
    return {"success": True, "message": "WhatsApp connection successful", "account": account}
