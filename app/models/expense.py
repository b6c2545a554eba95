# app/models/expense.py
import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, ForeignKey, Float, Boolean, Enum, DateTime
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from app.core.database import Base


class PaymentMethod(str, enum.Enum):
    cash = "cash"
    credit = "credit"
    debit = "debit"
    check = "check"
    transfer = "transfer"
    mobile = "mobile"


# Expense categories; keywords drive voice and bank-transaction categorisation
EXPENSE_CATEGORIES = [
    {"id": "housing", "name": "Housing", "keywords": ["rent", "mortgage", "housing"]},
    {"id": "utilities", "name": "Utilities", "keywords": ["electric", "electricity", "water bill", "internet", "phone bill", "utilities"]},
    {"id": "food", "name": "Food", "keywords": ["groceries", "grocery", "restaurant", "lunch", "dinner", "breakfast", "coffee", "food"]},
    {"id": "transportation", "name": "Transportation", "keywords": ["gas", "fuel", "uber", "lyft", "parking", "bus", "train", "transportation"]},
    {"id": "supplies", "name": "Work Supplies", "keywords": ["tools", "supplies", "parts", "equipment", "materials"]},
    {"id": "insurance", "name": "Insurance", "keywords": ["insurance", "premium"]},
    {"id": "healthcare", "name": "Healthcare", "keywords": ["doctor", "pharmacy", "medicine", "dentist", "healthcare"]},
    {"id": "entertainment", "name": "Entertainment", "keywords": ["movie", "movies", "netflix", "concert", "games", "entertainment"]},
    {"id": "shopping", "name": "Shopping", "keywords": ["clothes", "amazon", "shopping"]},
    {"id": "education", "name": "Education", "keywords": ["course", "books", "tuition", "education", "training"]},
    {"id": "other", "name": "Other", "keywords": []},
]

EXPENSE_CATEGORY_IDS = {c["id"] for c in EXPENSE_CATEGORIES}


def normalize_expense_category(category_id: str) -> str:
    category_id = (category_id or "").strip().lower()
    return category_id if category_id in EXPENSE_CATEGORY_IDS else "other"


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String(length=255), nullable=False)
    amount = Column(Float, nullable=False)
    date = Column(DateTime, nullable=False, default=datetime.utcnow)
    category = Column(String(length=50), nullable=False, default="other")
    payment_method = Column(Enum(PaymentMethod), default=PaymentMethod.cash, nullable=False)
    notes = Column(String(length=500), nullable=True)
    is_recurring = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="expenses")

    def __repr__(self):
        return f"<Expense description={self.description} amount={self.amount} user_id={self.user_id}>"
