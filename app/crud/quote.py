# app/crud/quote.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.models.quote import Quote, QuoteStatus
from app.schemas.quote import QuoteCreate
from app.utils.quotes import quote_totals, quote_expiry, profit_margin
from typing import List, Optional
import uuid


async def get_quotes_for_user(user_id: uuid.UUID, db: AsyncSession, status: Optional[QuoteStatus] = None) -> List[Quote]:
    query = select(Quote).where(Quote.user_id == user_id)
    if status is not None:
        query = query.where(Quote.status == status)
    result = await db.execute(query.order_by(Quote.created_at.desc()))
    return result.scalars().all()


async def get_quote_by_id(quote_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[Quote]:
    result = await db.execute(select(Quote).where(Quote.id == quote_id, Quote.user_id == user_id))
    return result.scalar_one_or_none()


async def create_quote_for_user(user_id: uuid.UUID, quote_in: QuoteCreate, db: AsyncSession) -> Quote:
    data = quote_in.dict()
    totals = quote_totals(data.pop("line_items"))
    quote = Quote(
        **data,
        **totals,
        user_id=user_id,
        profit_margin=profit_margin(quote_in.industry, quote_in.experience_years),
        expires_at=quote_expiry(),
    )
    db.add(quote)
    await db.commit()
    await db.refresh(quote)
    return quote


async def set_quote_status(quote: Quote, status: QuoteStatus, db: AsyncSession) -> Quote:
    quote.status = status
    db.add(quote)
    await db.commit()
    await db.refresh(quote)
    return quote


async def delete_quote(quote: Quote, db: AsyncSession) -> None:
    await db.delete(quote)
    await db.commit()
