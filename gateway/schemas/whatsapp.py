from datetime import datetime
from typing import Any, Mapping, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from gateway.services.language_service import DEFAULT_LOCALE, Locale
from gateway.services.template_service import TemplateKey


class SendMessageRequest(BaseModel):
    to: str
    message: str = Field(min_length=1, max_length=4096)
    language: Locale = DEFAULT_LOCALE


class SendTemplateRequest(BaseModel):
    to: str
    template_type: TemplateKey
    language: Locale = DEFAULT_LOCALE
    data: dict[str, Any] = Field(default_factory=dict)


class BulkRecipientIn(BaseModel):
    phone: str
    name: Optional[str] = None
    language: Locale = DEFAULT_LOCALE


class BulkSendRequest(BaseModel):
    recipients: list[BulkRecipientIn] = Field(min_length=1)
    template_type: TemplateKey
    data: dict[str, Any] = Field(default_factory=dict)


class SendOtpRequest(BaseModel):
    phone: str
    code: str = Field(min_length=4, max_length=10)
    language: Locale = DEFAULT_LOCALE


class SendResponse(BaseModel):
    success: bool
    message_sid: Optional[str] = None
    status: Optional[str] = None
    to: str


class BulkResultItem(BaseModel):
    phone: str
    success: bool
    message_sid: Optional[str] = None
    error: Optional[str] = None


class BulkSendResponse(BaseModel):
    success: bool
    total: int
    sent: int
    failed: int
    results: list[BulkResultItem]


class StatusResponse(BaseModel):
    configured: bool
    ai_configured: bool
    provider: str = "twilio"
    features: dict[str, Any]


class SessionSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    phone: str
    display_name: Optional[str] = None
    state: str
    detected_language: str
    last_message_at: Optional[datetime] = None
    created_at: datetime
    message_count: int = 0


class SessionListResponse(BaseModel):
    sessions: list[SessionSummary]
    limit: int
    offset: int


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    direction: str
    message_type: str
    content: str
    media_url: Optional[str] = None
    template_name: Optional[str] = None
    twilio_sid: Optional[str] = None
    status: str
    error_code: Optional[str] = None
    created_at: datetime


class MessageListResponse(BaseModel):
    messages: list[MessageOut]
    limit: int
    offset: int


# Twilio delivers at most 10 attachments per message
MAX_MEDIA_ATTACHMENTS = 10


class MediaAttachment(BaseModel):
    url: str
    content_type: Optional[str] = None


class InboundMessage(BaseModel):
    """Incoming-message webhook form, Twilio field names."""

    model_config = ConfigDict(populate_by_name=True)

    from_address: str = Field(min_length=1, validation_alias="From")
    body: str = Field(default="", validation_alias="Body")
    message_sid: Optional[str] = Field(default=None, validation_alias="MessageSid")
    profile_name: Optional[str] = Field(default=None, validation_alias="ProfileName")
    num_media: int = Field(default=0, ge=0, validation_alias="NumMedia")
    media: list[MediaAttachment] = Field(default_factory=list)

    @classmethod
    def from_form(cls, form: Mapping[str, str]) -> "InboundMessage":
        num_media = form.get("NumMedia") or "0"
        attachments = []
        for index in range(min(int(num_media), MAX_MEDIA_ATTACHMENTS)):
            url = form.get(f"MediaUrl{index}")
            if url:
                attachments.append(MediaAttachment(url=url, content_type=form.get(f"MediaContentType{index}")))
        return cls.model_validate({**form, "NumMedia": num_media, "media": attachments})


class StatusCallback(BaseModel):
    """Delivery status webhook form, Twilio field names."""

    message_sid: str = Field(min_length=1, validation_alias="MessageSid")
    message_status: str = Field(min_length=1, validation_alias="MessageStatus")
    error_code: Optional[str] = Field(default=None, validation_alias="ErrorCode")
    error_message: Optional[str] = Field(default=None, validation_alias="ErrorMessage")
