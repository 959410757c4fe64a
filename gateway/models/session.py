import uuid

from sqlalchemy import JSON, Column, DateTime, Text, Uuid
from sqlalchemy.orm import relationship

from gateway.database import Base


class WhatsAppSession(Base):
    __tablename__ = "whatsapp_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    phone = Column(Text, nullable=False, unique=True)  # whatsapp:+971501234567
    user_id = Column(Text)  # linked LegalDocs account, if any
    display_name = Column(Text)
    state = Column(Text, nullable=False, default="idle")  # idle, active
    detected_language = Column(Text, nullable=False, default="en")
    context = Column(JSON, nullable=False, default=dict)
    last_message_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    messages = relationship("WhatsAppMessage", back_populates="session")
    analyses = relationship("DocumentAnalysis", back_populates="session")
