import re
from typing import Optional
from xml.sax.saxutils import escape

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse, Response
from pydantic import ValidationError
from sqlalchemy.orm import Session

from gateway.config import settings
from gateway.database import get_db
from gateway.dependencies import get_command_router, get_orchestrator
from gateway.logging_config import LoggerAdapter, get_logger, mask_phone
from gateway.schemas.whatsapp import InboundMessage, StatusCallback
from gateway.services.alert_service import alert_critical, alert_warning
from gateway.services.analysis_service import AnalysisOrchestrator
from gateway.services.channel.twilio_provider import verify_twilio_signature
from gateway.services.command_router import CommandRouter
from gateway.services.language_service import DEFAULT_LOCALE, coerce_locale, detect_language
from gateway.services.media_service import is_analyzable
from gateway.services.message_service import (
    INBOUND,
    OUTBOUND,
    find_inbound_by_sid,
    log_message,
    update_delivery_status,
)
from gateway.services.reply_catalog import MessageKey, get_reply
from gateway.services.session_service import SessionCreateError, get_or_create_session, touch_session
from gateway.services.state_machine import DeliveryStatus, SessionState, activate

logger = get_logger("webhook")

router = APIRouter(prefix="/api/whatsapp/webhook", tags=["whatsapp-webhook"])

_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}
# Control characters XML 1.0 does not allow, even escaped
_XML_INVALID_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def escape_xml(text: str) -> str:
    return escape(_XML_INVALID_CHARS.sub("", text or ""), _XML_ENTITIES)


def twiml_reply(text: str) -> Response:
    body = f'<?xml version="1.0" encoding="UTF-8"?>\n<Response><Message>{escape_xml(text)}</Message></Response>'
    return Response(content=body, media_type="application/xml")


async def _read_form(request: Request) -> dict[str, str]:
    form = await request.form()
    return {key: str(value) for key, value in form.items()}


def _signature_url(request: Request) -> str:
    query = f"?{request.url.query}" if request.url.query else ""
    return f"{settings.public_base_url.rstrip('/')}{request.url.path}{query}"


async def _verify_signature(request: Request, params: dict[str, str]) -> None:
    """Reject unsigned or mis-signed webhooks when validation is enabled."""
    signature: Optional[str] = request.headers.get("X-Twilio-Signature")
    if not settings.twilio_validate_signature:
        if not signature:
            logger.debug(f"Webhook without signature: {request.url.path}")
        return

    if not verify_twilio_signature(signature, _signature_url(request), params, settings.twilio_auth_token):
        await alert_warning("Invalid Twilio webhook signature", {"path": request.url.path})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid webhook signature")


@router.post("/status")
async def handle_status_callback(request: Request, db: Session = Depends(get_db)):
    """Delivery status callback. Unknown message ids are acknowledged and ignored."""
    params = await _read_form(request)
    await _verify_signature(request, params)

    try:
        callback = StatusCallback.model_validate(params)
    except ValidationError:
        raise HTTPException(status_code=400, detail="MessageSid and MessageStatus are required")

    updated = update_delivery_status(
        db,
        callback.message_sid,
        callback.message_status,
        error_code=callback.error_code,
        error_message=callback.error_message,
    )
    logger.info(
        "Status callback",
        extra={
            "context": {
                "message_sid": callback.message_sid,
                "status": callback.message_status,
                "updated": updated,
            }
        },
    )
    return PlainTextResponse("OK")


async def process_inbound(
    db: Session,
    inbound: InboundMessage,
    orchestrator: AnalysisOrchestrator,
    command_router: CommandRouter,
) -> str:
    """Handle one incoming message and return the reply text."""
    try:
        session, is_new = get_or_create_session(db, inbound.from_address, initial_text=inbound.body)
    except SessionCreateError as e:
        await alert_critical(
            "WhatsApp session create failed", {"address": mask_phone(inbound.from_address), "error": str(e)}
        )
        raise
    locale = coerce_locale(session.detected_language)
    log = LoggerAdapter(logger, {"session_id": str(session.id), "message_sid": inbound.message_sid})

    analyzable = next((media for media in inbound.media if is_analyzable(media.content_type)), None)

    if find_inbound_by_sid(db, inbound.message_sid):
        log.info("Duplicate inbound delivery")
        if analyzable:
            return get_reply(MessageKey.ALREADY_RECEIVED, locale)
        return command_router.route(inbound.body, session, display_name=inbound.profile_name)

    first_media = inbound.media[0] if inbound.media else None
    log_message(
        db,
        session.id,
        INBOUND,
        inbound.body,
        DeliveryStatus.RECEIVED.value,
        message_type="media" if first_media else "text",
        media_url=first_media.url if first_media else None,
        media_content_type=first_media.content_type if first_media else None,
        twilio_sid=inbound.message_sid,
    )

    updates = {"state": activate(SessionState(session.state)).value}
    if inbound.profile_name and not session.display_name:
        updates["display_name"] = inbound.profile_name
    touch_session(db, session, **updates)

    if analyzable:
        log.info("Analyzing attachment", context={"content_type": analyzable.content_type, "is_new": is_new})
        reply = await orchestrator.analyze(session, analyzable.url, analyzable.content_type, caption=inbound.body)
    else:
        reply = command_router.route(inbound.body, session, display_name=inbound.profile_name)

    log_message(db, session.id, OUTBOUND, reply, DeliveryStatus.SENT.value)
    return reply


@router.post("/incoming")
async def handle_incoming_message(
    request: Request,
    db: Session = Depends(get_db),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
    command_router: CommandRouter = Depends(get_command_router),
):
    """Incoming WhatsApp message. Always answers 200 with a TwiML reply, except 403 for a bad signature."""
    try:
        params = await _read_form(request)
    except Exception:
        logger.exception("Unreadable incoming webhook body")
        return twiml_reply(get_reply(MessageKey.PROCESSING_ERROR, DEFAULT_LOCALE))

    await _verify_signature(request, params)

    try:
        inbound = InboundMessage.from_form(params)
        reply = await process_inbound(db, inbound, orchestrator, command_router)
    except Exception:
        logger.exception("Incoming webhook failed", extra={"context": {"message_sid": params.get("MessageSid")}})
        reply = get_reply(MessageKey.PROCESSING_ERROR, detect_language(params.get("Body")))

    return twiml_reply(reply)
