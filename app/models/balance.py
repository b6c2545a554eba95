# app/models/balance.py
import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from app.core.database import Base


class Balance(Base):
    """Running balance for one calendar month (month is 1-12)."""
    __tablename__ = "balances"
    __table_args__ = (UniqueConstraint("user_id", "year", "month", name="uq_balance_user_month"),)

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    beginning_balance = Column(Float, nullable=False, default=0.0)
    current_balance = Column(Float, nullable=False, default=0.0)
    last_updated = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Balance {self.year}-{self.month:02d} current={self.current_balance} user_id={self.user_id}>"
