# app/models/invoice.py
import uuid
from datetime import datetime
from sqlalchemy import Column, String, ForeignKey, Float, Boolean, DateTime, JSON
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from app.core.database import Base


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    invoice_number = Column(String(length=50), nullable=False, index=True)
    client_name = Column(String(length=150), nullable=False)
    client_email = Column(String(length=255), nullable=True)
    # [{"description": str, "quantity": float, "unit_price": float}]
    line_items = Column(JSON, nullable=False, default=list)
    tax_rate = Column(Float, nullable=False, default=0.0)
    subtotal = Column(Float, nullable=False, default=0.0)
    tax_amount = Column(Float, nullable=False, default=0.0)
    total = Column(Float, nullable=False, default=0.0)
    due_date = Column(DateTime, nullable=True)
    notes = Column(String(length=1000), nullable=True)
    payment_method = Column(String(length=50), nullable=True)
    paid = Column(Boolean, default=False, nullable=False)
    paid_at = Column(DateTime, nullable=True)
    stripe_payment_intent = Column(String, nullable=True)
    sent_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Invoice number={self.invoice_number} total={self.total} user_id={self.user_id}>"
