import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Text, Uuid
from sqlalchemy.orm import relationship

from gateway.database import Base


class WhatsAppMessage(Base):
    __tablename__ = "whatsapp_messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id = Column(Uuid, ForeignKey("whatsapp_sessions.id"), nullable=False, index=True)
    direction = Column(Text, nullable=False)  # inbound, outbound
    message_type = Column(Text, nullable=False, default="text")  # text, media, template
    content = Column(Text, nullable=False, default="")
    media_url = Column(Text)
    media_content_type = Column(Text)
    template_name = Column(Text)
    twilio_sid = Column(Text, index=True)
    status = Column(Text, nullable=False)  # received, queued, sent, delivered, read, failed, undelivered
    error_code = Column(Text)
    error_message = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True))

    session = relationship("WhatsAppSession", back_populates="messages")
