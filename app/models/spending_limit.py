# app/models/spending_limit.py
import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, Float, DateTime, ForeignKey, Boolean, Enum, JSON, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from app.core.database import Base


class LimitPeriod(str, enum.Enum):
    weekly = "weekly"
    monthly = "monthly"


class SpendingLimit(Base):
    __tablename__ = "spending_limits"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String(length=50), nullable=False)
    limit_amount = Column(Float, nullable=False)
    period = Column(Enum(LimitPeriod), default=LimitPeriod.monthly, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    # Highest alert already sent, and for which period, so alerts fire once per level per period
    last_alert_level = Column(String(length=20), nullable=True)
    last_alert_period_start = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<SpendingLimit category={self.category} limit={self.limit_amount} period={self.period}>"


class WeeklyReflection(Base):
    __tablename__ = "weekly_reflections"
    __table_args__ = (UniqueConstraint("user_id", "week_start", name="uq_weekly_reflection"),)

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    week_start = Column(DateTime, nullable=False)
    week_end = Column(DateTime, nullable=False)
    overall_status = Column(String(length=20), nullable=False)  # good, warning, over_budget
    category_summary = Column(JSON, nullable=False, default=list)
    ai_suggestion = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
