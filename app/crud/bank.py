# app/crud/bank.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from sqlalchemy import delete
from app.models.bank import BankConnection, BankAccount, BankTransaction
from typing import List, Optional, Dict, Any
from datetime import datetime
import uuid


async def get_connections_for_user(user_id: uuid.UUID, db: AsyncSession) -> List[BankConnection]:
    result = await db.execute(
        select(BankConnection)
        .where(BankConnection.user_id == user_id)
        .order_by(BankConnection.created_at.desc())
    )
    return result.scalars().all()


async def get_connection_by_id(connection_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[BankConnection]:
    result = await db.execute(
        select(BankConnection)
        .options(selectinload(BankConnection.accounts))
        .where(BankConnection.id == connection_id, BankConnection.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def create_connection(user_id: uuid.UUID, item_id: str, access_token: str,
                            institution_id: Optional[str], institution_name: Optional[str],
                            db: AsyncSession) -> BankConnection:
    connection = BankConnection(
        user_id=user_id,
        item_id=item_id,
        access_token=access_token,
        institution_id=institution_id,
        institution_name=institution_name,
        status="active",
    )
    db.add(connection)
    await db.commit()
    await db.refresh(connection)
    return connection


async def replace_accounts(connection: BankConnection, accounts: List[Dict[str, Any]], db: AsyncSession) -> List[BankAccount]:
    """Insert or refresh the accounts Plaid reports for a connection."""
    result = await db.execute(select(BankAccount).where(BankAccount.connection_id == connection.id))
    existing = {a.plaid_account_id: a for a in result.scalars().all()}

    stored = []
    for account in accounts:
        balances = account.get("balances") or {}
        row = existing.get(account["account_id"]) or BankAccount(
            connection_id=connection.id, plaid_account_id=account["account_id"]
        )
        row.name = account.get("name") or account.get("official_name") or "Account"
        row.type = account.get("type")
        row.subtype = account.get("subtype")
        row.mask = account.get("mask")
        row.balance_available = balances.get("available")
        row.balance_current = balances.get("current")
        row.is_active = True
        db.add(row)
        stored.append(row)

    await db.commit()
    for row in stored:
        await db.refresh(row)
    return stored


async def get_accounts_for_connection(connection_id: uuid.UUID, db: AsyncSession) -> List[BankAccount]:
    result = await db.execute(select(BankAccount).where(BankAccount.connection_id == connection_id))
    return result.scalars().all()


async def get_account_for_user(account_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[BankAccount]:
    result = await db.execute(
        select(BankAccount)
        .join(BankConnection, BankAccount.connection_id == BankConnection.id)
        .where(BankAccount.id == account_id, BankConnection.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_transactions_for_account(account_id: uuid.UUID, db: AsyncSession, limit: int = 100) -> List[BankTransaction]:
    result = await db.execute(
        select(BankTransaction)
        .where(BankTransaction.account_id == account_id)
        .order_by(BankTransaction.date.desc())
        .limit(limit)
    )
    return result.scalars().all()


async def get_transactions_by_plaid_ids(plaid_ids: List[str], db: AsyncSession) -> Dict[str, BankTransaction]:
    if not plaid_ids:
        return {}
    result = await db.execute(
        select(BankTransaction).where(BankTransaction.plaid_transaction_id.in_(plaid_ids))
    )
    return {t.plaid_transaction_id: t for t in result.scalars().all()}


async def get_unimported_inflows(connection_id: uuid.UUID, db: AsyncSession) -> List[BankTransaction]:
    # Plaid reports money coming in as negative amounts
    result = await db.execute(
        select(BankTransaction)
        .join(BankAccount, BankTransaction.account_id == BankAccount.id)
        .where(
            BankAccount.connection_id == connection_id,
            BankTransaction.amount < 0,
            BankTransaction.imported_as_income == False,
        )
        .order_by(BankTransaction.date)
    )
    return result.scalars().all()


async def mark_synced(connection: BankConnection, cursor: Optional[str], db: AsyncSession) -> BankConnection:
    connection.transaction_cursor = cursor
    connection.last_synced_at = datetime.utcnow()
    db.add(connection)
    await db.commit()
    await db.refresh(connection)
    return connection


async def delete_connection(connection: BankConnection, db: AsyncSession) -> None:
    account_ids = select(BankAccount.id).where(BankAccount.connection_id == connection.id)
    await db.execute(delete(BankTransaction).where(BankTransaction.account_id.in_(account_ids)))
    await db.execute(delete(BankAccount).where(BankAccount.connection_id == connection.id))
    await db.execute(delete(BankConnection).where(BankConnection.id == connection.id))
    await db.commit()
