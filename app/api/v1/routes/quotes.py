# app/api/v1/routes/quotes.py
import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.auth import User
from app.core.database import get_async_session
from app.crud import quote as crud_quote
from app.models.quote import Quote, QuoteStatus
from app.schemas.quote import (
    QuoteCreate, QuoteRead, QuoteStatusUpdate, QuoteEstimateRequest, QuoteEstimate, QuoteHistory,
)
from app.utils.quotes import competitive_price, quote_history_stats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["quotes"])

# A decided quote stays decided
ALLOWED_TRANSITIONS = {
    QuoteStatus.draft: {QuoteStatus.sent, QuoteStatus.accepted, QuoteStatus.declined},
    QuoteStatus.sent: {QuoteStatus.accepted, QuoteStatus.declined},
    QuoteStatus.accepted: set(),
    QuoteStatus.declined: set(),
}


async def _get_quote(quote_id: uuid.UUID, user: User, db: AsyncSession) -> Quote:
    quote = await crud_quote.get_quote_by_id(quote_id, user.id, db)
    if not quote:
        raise HTTPException(status_code=404, detail="Quote not found")
    return quote


@router.post("/estimate", response_model=QuoteEstimate)
async def estimate_price(
    estimate_in: QuoteEstimateRequest,
    user: User = Depends(get_current_user),
):
    """Suggested price for a job, with the margin and seasonal adjustment it used."""
    return competitive_price(estimate_in.base_price, estimate_in.experience_years, estimate_in.industry)


@router.get("/history", response_model=QuoteHistory)
async def quote_history(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    quotes = await crud_quote.get_quotes_for_user(user.id, db)
    return {"quotes": quotes, "stats": quote_history_stats(quotes)}


@router.get("/", response_model=List[QuoteRead])
async def list_quotes(
    status_filter: Optional[QuoteStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_quote.get_quotes_for_user(user.id, db, status=status_filter)


@router.post("/", response_model=QuoteRead, status_code=status.HTTP_201_CREATED)
async def create_quote(
    quote_in: QuoteCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    quote = await crud_quote.create_quote_for_user(user.id, quote_in, db)
    logger.info(f"🧾 Quote for {quote.client_name} created by user {user.id}: {quote.total}")
    return quote


@router.get("/{quote_id}", response_model=QuoteRead)
async def get_quote(
    quote_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await _get_quote(quote_id, user, db)


@router.patch("/{quote_id}/status", response_model=QuoteRead)
async def update_quote_status(
    quote_id: uuid.UUID,
    status_in: QuoteStatusUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    quote = await _get_quote(quote_id, user, db)
    if status_in.status == quote.status:
        return quote
    if status_in.status not in ALLOWED_TRANSITIONS[quote.status]:
        raise HTTPException(status_code=400,
                            detail=f"A {quote.status.value} quote cannot be marked {status_in.status.value}")
    if quote.is_expired and status_in.status == QuoteStatus.accepted:
        raise HTTPException(status_code=400, detail="This quote has expired")
    return await crud_quote.set_quote_status(quote, status_in.status, db)


@router.delete("/{quote_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quote(
    quote_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    quote = await _get_quote(quote_id, user, db)
    await crud_quote.delete_quote(quote, db)
