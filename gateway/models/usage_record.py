import uuid

from sqlalchemy import Column, DateTime, Integer, Text, Uuid

from gateway.database import Base


class UsageRecord(Base):
    __tablename__ = "usage_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    period = Column(Text, nullable=False, unique=True)  # YYYY-MM
    whatsapp_messages = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=False)
