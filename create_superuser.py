#!/usr/bin/env python3
"""
Create a Stackr superuser (needed for PATCH /api/v1/ai/settings).
Usage: python create_superuser.py
"""

import asyncio
from app.core.database import AsyncSessionLocal, engine, Base
from app.core.auth import User, UserManager, UserCreate
from app.models import (  # noqa: F401
    balance, bank, expense, gig, goal, income, invoice, notification, spending_limit,
)
from fastapi_users.db import SQLAlchemyUserDatabase


async def create_superuser():
    email = input("Superuser email [admin@stackr.app]: ") or "admin@stackr.app"
    password = input("Superuser password: ")
    if len(password) < 8:
        print("❌ Password must be at least 8 characters")
        return
    full_name = input("Full name [Stackr Admin]: ") or "Stackr Admin"

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        user_manager = UserManager(SQLAlchemyUserDatabase(session, User))

        if await user_manager.user_db.get_by_email(email):
            print(f"⚠️ User {email} already exists")
            return

        superuser = await user_manager.create(
            UserCreate(
                email=email,
                password=password,
                full_name=full_name,
                is_superuser=True,
                is_verified=True,
            )
        )
        print(f"✅ Superuser created: {superuser.email} ({superuser.id})")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(create_superuser())
