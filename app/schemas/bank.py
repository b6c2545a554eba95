# app/schemas/bank.py
from typing import Optional, List
from pydantic import BaseModel
from datetime import datetime
import uuid


class LinkTokenResponse(BaseModel):
    link_token: str
    expiration: Optional[str] = None


class InstitutionInfo(BaseModel):
    institution_id: Optional[str] = None
    name: Optional[str] = None


class PublicTokenExchange(BaseModel):
    public_token: str
    institution: Optional[InstitutionInfo] = None


class BankAccountRead(BaseModel):
    id: uuid.UUID
    connection_id: uuid.UUID
    plaid_account_id: str
    name: str
    type: Optional[str] = None
    subtype: Optional[str] = None
    mask: Optional[str] = None
    balance_available: Optional[float] = None
    balance_current: Optional[float] = None
    is_active: bool

    class Config:
        from_attributes = True


class BankConnectionRead(BaseModel):
    id: uuid.UUID
    institution_id: Optional[str] = None
    institution_name: Optional[str] = None
    item_id: str
    status: str
    last_synced_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BankConnectionDetail(BankConnectionRead):
    accounts: List[BankAccountRead] = []


class BankTransactionRead(BaseModel):
    id: uuid.UUID
    account_id: uuid.UUID
    plaid_transaction_id: str
    amount: float
    date: datetime
    name: str
    merchant_name: Optional[str] = None
    category: Optional[str] = None
    pending: bool
    imported_as_income: bool

    class Config:
        from_attributes = True


class SyncResult(BaseModel):
    added: int
    modified: int
    removed: int
    last_synced_at: datetime


class ImportIncomeResult(BaseModel):
    imported: int
    total_amount: float
