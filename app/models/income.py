# app/models/income.py
import uuid
from datetime import datetime
from sqlalchemy import Column, String, ForeignKey, Float, DateTime
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from app.core.database import Base

# Income categories for service providers, with the words that identify them
INCOME_CATEGORIES = [
    {"id": "service", "name": "Service Job", "icon": "wrench", "keywords": ["service", "job", "gig"]},
    {"id": "emergency", "name": "Emergency Call", "icon": "bell", "keywords": ["emergency", "urgent", "after hours"]},
    {"id": "installation", "name": "Installation", "icon": "settings", "keywords": ["installation", "install"]},
    {"id": "consulting", "name": "Consulting", "icon": "messagesSquare", "keywords": ["consulting", "consultation", "advice"]},
    {"id": "repair", "name": "Repair", "icon": "tool", "keywords": ["repair", "fix", "fixed"]},
    {"id": "retail", "name": "Retail Sale", "icon": "shoppingBag", "keywords": ["retail", "sale", "sold"]},
    {"id": "other", "name": "Other", "icon": "moreHorizontal", "keywords": []},
]

INCOME_CATEGORY_IDS = {c["id"] for c in INCOME_CATEGORIES}


def normalize_income_category(category_id: str) -> str:
    """Unknown categories fall back to "other"."""
    category_id = (category_id or "").strip().lower()
    return category_id if category_id in INCOME_CATEGORY_IDS else "other"


class Income(Base):
    __tablename__ = "incomes"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String(length=255), nullable=False)
    amount = Column(Float, nullable=False)
    date = Column(DateTime, nullable=False, default=datetime.utcnow)
    source = Column(String(length=100), nullable=False, default="Manual")
    category = Column(String(length=50), nullable=False, default="other")
    # Set when the income was imported from a linked bank account
    bank_transaction_id = Column(PG_UUID(as_uuid=True), ForeignKey("bank_transactions.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="incomes")

    def __repr__(self):
        return f"<Income description={self.description} amount={self.amount} user_id={self.user_id}>"
