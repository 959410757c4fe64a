import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Text, Uuid
from sqlalchemy.orm import relationship

from gateway.database import Base


class DocumentAnalysis(Base):
    __tablename__ = "document_analyses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id = Column(Uuid, ForeignKey("whatsapp_sessions.id"), nullable=False, index=True)
    document_type = Column(Text, nullable=False)
    risk_score = Column(Integer, nullable=False)
    summary = Column(Text)
    findings = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False)

    session = relationship("WhatsAppSession", back_populates="analyses")
