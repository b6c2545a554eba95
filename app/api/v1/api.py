# app/api/v1/api.py
from fastapi import APIRouter

from app.api.v1.routes import (
    ai,
    allocation,
    auth,
    balances,
    bank_connections,
    dashboard,
    expenses,
    gigs,
    goals,
    guardrails,
    incomes,
    invoices,
    notifications,
    quotes,
    subscription,
    users,
    voice,
)

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(incomes.router)
api_router.include_router(expenses.router)
api_router.include_router(allocation.router)
api_router.include_router(balances.router)
api_router.include_router(guardrails.router)
api_router.include_router(goals.router)
api_router.include_router(ai.router)
api_router.include_router(voice.router)
api_router.include_router(bank_connections.router)
api_router.include_router(gigs.router)
api_router.include_router(invoices.router)
api_router.include_router(quotes.router)
api_router.include_router(subscription.router)
api_router.include_router(notifications.router)
api_router.include_router(dashboard.router)
