# app/models/bank.py
import uuid
from datetime import datetime
from sqlalchemy import Column, String, ForeignKey, Float, Boolean, DateTime, JSON
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from app.core.database import Base


class BankConnection(Base):
    """A Plaid item linked by a user."""
    __tablename__ = "bank_connections"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    institution_id = Column(String, nullable=True)
    institution_name = Column(String, nullable=True)
    item_id = Column(String, unique=True, nullable=False)
    access_token = Column(String, nullable=False)
    status = Column(String, nullable=False, default="active")
    transaction_cursor = Column(String, nullable=True)
    last_synced_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    accounts = relationship("BankAccount", back_populates="connection", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<BankConnection institution={self.institution_name} user_id={self.user_id}>"


class BankAccount(Base):
    __tablename__ = "bank_accounts"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    connection_id = Column(PG_UUID(as_uuid=True), ForeignKey("bank_connections.id", ondelete="CASCADE"), nullable=False, index=True)
    plaid_account_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=True)
    subtype = Column(String, nullable=True)
    mask = Column(String, nullable=True)
    balance_available = Column(Float, nullable=True)
    balance_current = Column(Float, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    connection = relationship("BankConnection", back_populates="accounts")
    transactions = relationship("BankTransaction", back_populates="account", cascade="all, delete-orphan", passive_deletes=True)


class BankTransaction(Base):
    __tablename__ = "bank_transactions"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    account_id = Column(PG_UUID(as_uuid=True), ForeignKey("bank_accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    plaid_transaction_id = Column(String, unique=True, nullable=False)
    # Plaid convention: outflows positive, inflows negative
    amount = Column(Float, nullable=False)
    date = Column(DateTime, nullable=False)
    name = Column(String, nullable=False)
    merchant_name = Column(String, nullable=True)
    category = Column(String, nullable=True)
    pending = Column(Boolean, default=False, nullable=False)
    imported_as_income = Column(Boolean, default=False, nullable=False)
    details = Column(JSON, nullable=True)

    account = relationship("BankAccount", back_populates="transactions")
