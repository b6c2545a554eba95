# app/models/gig.py
import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, ForeignKey, Float, Boolean, DateTime, Enum, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from app.core.database import Base


class GigStatus(str, enum.Enum):
    open = "open"
    assigned = "assigned"
    completed = "completed"
    cancelled = "cancelled"


class Gig(Base):
    __tablename__ = "gigs"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_by = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(length=150), nullable=False)
    description = Column(String(length=2000), nullable=False)
    category = Column(String(length=50), nullable=False, default="service")
    pay_amount = Column(Float, nullable=False)
    location = Column(String(length=255), nullable=True)
    is_remote = Column(Boolean, default=False, nullable=False)
    status = Column(Enum(GigStatus), default=GigStatus.open, nullable=False)
    assigned_to = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    applications = relationship("GigApplication", back_populates="gig", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Gig title={self.title} status={self.status}>"


class GigApplication(Base):
    __tablename__ = "gig_applications"
    __table_args__ = (UniqueConstraint("gig_id", "applicant_id", name="uq_gig_application"),)

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    gig_id = Column(PG_UUID(as_uuid=True), ForeignKey("gigs.id", ondelete="CASCADE"), nullable=False, index=True)
    applicant_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    message = Column(String(length=1000), nullable=True)
    status = Column(String(length=20), nullable=False, default="pending")  # pending, accepted, rejected
    created_at = Column(DateTime, default=datetime.utcnow)

    gig = relationship("Gig", back_populates="applications")
