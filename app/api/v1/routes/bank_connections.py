# app/api/v1/routes/bank_connections.py
import uuid
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, require_pro_user
from app.core.auth import User
from app.core.database import get_async_session
from app.crud import bank as crud_bank
from app.crud.balance import recalculate_balances_from
from app.crud.income import create_income_for_user
from app.models.bank import BankConnection, BankTransaction
from app.schemas.bank import (
    LinkTokenResponse, PublicTokenExchange, BankConnectionRead, BankConnectionDetail,
    BankAccountRead, BankTransactionRead, SyncResult, ImportIncomeResult,
)
from app.schemas.income import IncomeCreate
from app.services.plaid_service import (
    PlaidService, PlaidError, PlaidNotConfiguredError, get_plaid_service, transaction_fields,
)
from app.utils.voice import detect_category
from app.models.income import INCOME_CATEGORIES

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bank connections"])


def plaid_http_error(error: PlaidError) -> HTTPException:
    if isinstance(error, PlaidNotConfiguredError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Bank linking is not configured")
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Plaid error: {error}")


async def _get_owned_connection(connection_id: uuid.UUID, user: User, db: AsyncSession) -> BankConnection:
    connection = await crud_bank.get_connection_by_id(connection_id, user.id, db)
    if not connection:
        raise HTTPException(status_code=404, detail="Bank connection not found")
    return connection


@router.post("/plaid/create-link-token", response_model=LinkTokenResponse)
async def create_link_token(
    user: User = Depends(get_current_user),
    plaid: PlaidService = Depends(get_plaid_service),
):
    try:
        return await plaid.create_link_token(str(user.id))
    except PlaidError as e:
        raise plaid_http_error(e)


@router.post("/plaid/exchange-token", response_model=BankConnectionDetail, status_code=status.HTTP_201_CREATED)
async def exchange_public_token(
    body: PublicTokenExchange,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
    plaid: PlaidService = Depends(get_plaid_service),
):
    """Swap the Link public token for an access token and store the item with its accounts."""
    try:
        exchanged = await plaid.exchange_public_token(body.public_token)
        accounts = await plaid.get_accounts(exchanged["access_token"])
    except PlaidError as e:
        raise plaid_http_error(e)

    institution = body.institution
    connection = await crud_bank.create_connection(
        user.id,
        exchanged["item_id"],
        exchanged["access_token"],
        institution.institution_id if institution else None,
        institution.name if institution else None,
        db,
    )
    stored_accounts = await crud_bank.replace_accounts(connection, accounts, db)
    logger.info(f"🏦 Linked {len(stored_accounts)} accounts for user {user.id}")

    return BankConnectionDetail(
        **BankConnectionRead.model_validate(connection).model_dump(),
        accounts=[BankAccountRead.model_validate(a) for a in stored_accounts],
    )


@router.get("/bank-connections", response_model=List[BankConnectionRead])
async def list_connections(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_bank.get_connections_for_user(user.id, db)


@router.get("/bank-connections/{connection_id}", response_model=BankConnectionDetail)
async def get_connection(
    connection_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await _get_owned_connection(connection_id, user, db)


@router.get("/bank-connections/{connection_id}/accounts", response_model=List[BankAccountRead])
async def list_connection_accounts(
    connection_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    connection = await _get_owned_connection(connection_id, user, db)
    return await crud_bank.get_accounts_for_connection(connection.id, db)


@router.get("/bank-accounts/{account_id}/transactions", response_model=List[BankTransactionRead])
async def list_account_transactions(
    account_id: uuid.UUID,
    limit: int = 100,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    account = await crud_bank.get_account_for_user(account_id, user.id, db)
    if not account:
        raise HTTPException(status_code=404, detail="Bank account not found")
    return await crud_bank.get_transactions_for_account(account.id, db, limit=min(limit, 500))


@router.post("/bank-connections/{connection_id}/sync", response_model=SyncResult)
async def sync_connection(
    connection_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(require_pro_user),
    plaid: PlaidService = Depends(get_plaid_service),
):
    """
    Pull transactions added, modified or removed since the stored cursor.
    Transactions for accounts we don't know about are skipped.
    """
    connection = await _get_owned_connection(connection_id, user, db)
    try:
        changes = await plaid.sync_transactions(connection.access_token, connection.transaction_cursor)
    except PlaidError as e:
        raise plaid_http_error(e)

    accounts = {a.plaid_account_id: a for a in await crud_bank.get_accounts_for_connection(connection.id, db)}
    touched_ids = [t["transaction_id"] for t in changes["added"] + changes["modified"] + changes["removed"]]
    known = await crud_bank.get_transactions_by_plaid_ids(touched_ids, db)

    # Rows first seen in this sync, not yet flushed
    pending = {}
    for txn in changes["added"]:
        account = accounts.get(txn.get("account_id"))
        plaid_id = txn["transaction_id"]
        if account is None or plaid_id in known or plaid_id in pending:
            continue
        row = BankTransaction(account_id=account.id, plaid_transaction_id=plaid_id, **transaction_fields(txn))
        db.add(row)
        pending[plaid_id] = row

    modified = 0
    for txn in changes["modified"]:
        row = known.get(txn["transaction_id"]) or pending.get(txn["transaction_id"])
        if row is None:
            continue
        for field, value in transaction_fields(txn).items():
            setattr(row, field, value)
        db.add(row)
        modified += 1

    removed = 0
    for txn in changes["removed"]:
        plaid_id = txn["transaction_id"]
        if plaid_id in pending:
            # Pending transaction that posted within the same sync
            db.expunge(pending.pop(plaid_id))
        elif plaid_id in known:
            await db.delete(known.pop(plaid_id))
            removed += 1

    added = len(pending)

    await db.commit()
    connection = await crud_bank.mark_synced(connection, changes["next_cursor"], db)
    logger.info(f"🔄 Synced connection {connection.id}: +{added} ~{modified} -{removed}")
    return SyncResult(added=added, modified=modified, removed=removed, last_synced_at=connection.last_synced_at)


@router.post("/bank-connections/{connection_id}/import-income", response_model=ImportIncomeResult)
async def import_income(
    connection_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(require_pro_user),
):
    """Turn deposits (negative Plaid amounts) that haven't been imported yet into incomes."""
    connection = await _get_owned_connection(connection_id, user, db)
    inflows = await crud_bank.get_unimported_inflows(connection.id, db)

    total = 0.0
    earliest = None
    for txn in inflows:
        amount = round(abs(txn.amount), 2)
        income_in = IncomeCreate(
            description=(txn.merchant_name or txn.name)[:255],
            amount=amount,
            date=txn.date,
            source=connection.institution_name or "Bank",
            category=detect_category(txn.name.lower(), INCOME_CATEGORIES),
        )
        txn.imported_as_income = True
        db.add(txn)
        income = await create_income_for_user(user.id, income_in, db, bank_transaction_id=txn.id)
        earliest = income.date if earliest is None else min(earliest, income.date)
        total += amount

    if earliest is not None:
        await recalculate_balances_from(user.id, earliest, db)

    return ImportIncomeResult(imported=len(inflows), total_amount=round(total, 2))


@router.delete("/bank-connections/{connection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_connection(
    connection_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
    plaid: PlaidService = Depends(get_plaid_service),
):
    connection = await _get_owned_connection(connection_id, user, db)
    if plaid.is_configured:
        try:
            await plaid.remove_item(connection.access_token)
        except PlaidError as e:
            # The local record is removed even if Plaid already forgot the item
            logger.warning(f"Plaid item removal failed for {connection.item_id}: {e}")
    await crud_bank.delete_connection(connection, db)
