# app/models/goal.py
import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, Float, DateTime, ForeignKey, Boolean, Enum
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from app.core.database import Base


class GoalType(str, enum.Enum):
    savings = "savings"
    income = "income"
    investment = "investment"
    debt = "debt"
    other = "other"


class Goal(Base):
    __tablename__ = "goals"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(length=150), nullable=False)
    type = Column(Enum(GoalType), default=GoalType.savings, nullable=False)
    description = Column(String(length=500), nullable=True)
    target_amount = Column(Float, nullable=False)
    # Updated through the progress endpoint
    current_amount = Column(Float, default=0.0, nullable=False)
    deadline = Column(DateTime, nullable=True)
    is_completed = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="goals")

    def __repr__(self):
        return f"<Goal name={self.name} target={self.target_amount} user_id={self.user_id}>"
