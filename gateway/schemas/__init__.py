from gateway.schemas.whatsapp import (
    BulkSendRequest,
    BulkSendResponse,
    InboundMessage,
    MessageListResponse,
    SendMessageRequest,
    SendOtpRequest,
    SendResponse,
    SendTemplateRequest,
    SessionListResponse,
    StatusCallback,
    StatusResponse,
)

__all__ = [
    "BulkSendRequest",
    "BulkSendResponse",
    "InboundMessage",
    "MessageListResponse",
    "SendMessageRequest",
    "SendOtpRequest",
    "SendResponse",
    "SendTemplateRequest",
    "SessionListResponse",
    "StatusCallback",
    "StatusResponse",
]
