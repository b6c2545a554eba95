# app/models/quote.py
import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, ForeignKey, Float, DateTime, Enum, JSON
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from app.core.database import Base


class QuoteStatus(str, enum.Enum):
    draft = "draft"
    sent = "sent"
    accepted = "accepted"
    declined = "declined"


class QuoteTier(str, enum.Enum):
    basic = "basic"
    standard = "standard"
    premium = "premium"


class Quote(Base):
    __tablename__ = "quotes"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    client_name = Column(String(length=150), nullable=False)
    client_email = Column(String, nullable=True)
    industry = Column(String(length=50), nullable=False)
    service_type = Column(String(length=150), nullable=False)
    description = Column(String(length=2000), nullable=True)
    experience_years = Column(Float, nullable=False, default=0.0)
    profit_margin = Column(Float, nullable=False)
    line_items = Column(JSON, nullable=False, default=list)
    subtotal = Column(Float, nullable=False)
    tax = Column(Float, nullable=False)
    total = Column(Float, nullable=False)
    # {"basic": ..., "standard": ..., "premium": ...} computed from the total
    tiered_pricing = Column(JSON, nullable=False, default=dict)
    selected_tier = Column(Enum(QuoteTier), default=QuoteTier.standard, nullable=False)
    status = Column(Enum(QuoteStatus), default=QuoteStatus.draft, nullable=False)
    notes = Column(String(length=1000), nullable=True)
    expires_at = Column(DateTime, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_expired(self) -> bool:
        return self.status in (QuoteStatus.draft, QuoteStatus.sent) and self.expires_at < datetime.utcnow()

    def __repr__(self):
        return f"<Quote client={self.client_name} total={self.total} status={self.status}>"
