from gateway.models.analysis import DocumentAnalysis
from gateway.models.message import WhatsAppMessage
from gateway.models.session import WhatsAppSession
from gateway.models.usage_record import UsageRecord

__all__ = [
    "WhatsAppSession",
    "WhatsAppMessage",
    "DocumentAnalysis",
    "UsageRecord",
]
